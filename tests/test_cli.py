"""
CLI tests using click's CliRunner against throwaway repositories.
"""

import json

import pytest
from click.testing import CliRunner

from pushlog.cli import cli
from pushlog.exit_codes import NO_REPOSITORY, CONFIG_ERROR, DATA_ERROR

from conftest import make_cert, git


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def repo(git_repo, isolated_home):
    return str(git_repo)


def _json_lines(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith('{')]


def _write_cert(tmp_path, name, *refs, **kwargs):
    path = tmp_path / name
    path.write_bytes(make_cert(*refs, **kwargs))
    return str(path)


class TestAccept:
    """pushlog accept"""

    def test_accept_file(self, runner, repo, tmp_path):
        cert = _write_cert(tmp_path, "c1", "refs/heads/main")
        result = runner.invoke(cli, ['-C', repo, 'accept', '--file', cert, '--status', 'OK'])

        assert result.exit_code == 0, result.output
        [summary] = _json_lines(result.output)
        assert summary['accepted'] is True
        assert summary['archived'] == 1
        assert len(summary['certificate_id']) == 40

    def test_accept_stdin(self, runner, repo):
        result = runner.invoke(
            cli, ['-C', repo, 'accept', '--file', '-', '--status', 'OK'],
            input=make_cert("refs/heads/main"),
        )
        assert result.exit_code == 0, result.output
        assert _json_lines(result.output)[0]['accepted'] is True

    def test_status_from_environment(self, runner, repo, tmp_path, monkeypatch):
        cert = _write_cert(tmp_path, "c1", "refs/heads/main")
        monkeypatch.setenv('GIT_PUSH_CERT_NONCE_STATUS', 'BAD')
        result = runner.invoke(cli, ['-C', repo, 'accept', '--file', cert])
        assert result.exit_code == 0
        assert _json_lines(result.output) == [{'accepted': False, 'status': 'BAD'}]

    def test_threshold_option(self, runner, repo, tmp_path):
        for n in range(2):
            cert = _write_cert(tmp_path, f"c{n}", "refs/heads/main", nonce=f"n{n}")
            result = runner.invoke(
                cli, ['-C', repo, 'accept', '-f', cert, '-s', 'OK', '--threshold', '2']
            )
            assert result.exit_code == 0, result.output
        assert _json_lines(result.output)[0]['archived'] == 2

    def test_accept_from_hook_environment(self, runner, repo, git_repo, monkeypatch):
        oid = git(git_repo, 'hash-object', '-w', '--stdin', input=make_cert("refs/heads/main"))
        monkeypatch.setenv('GIT_PUSH_CERT', oid)
        monkeypatch.setenv('GIT_PUSH_CERT_NONCE_STATUS', 'OK')

        result = runner.invoke(cli, ['-C', repo, 'accept'])

        assert result.exit_code == 0, result.output
        assert _json_lines(result.output)[0]['certificate_id'] == oid

    def test_unsigned_push_is_silent(self, runner, repo, monkeypatch):
        monkeypatch.delenv('GIT_PUSH_CERT', raising=False)
        result = runner.invoke(cli, ['-C', repo, 'accept'])
        assert result.exit_code == 0
        assert _json_lines(result.output) == []

    def test_malformed_certificate(self, runner, repo, tmp_path):
        bad = tmp_path / "bad"
        bad.write_bytes(b"hello\n")
        result = runner.invoke(cli, ['-C', repo, 'accept', '-f', str(bad), '-s', 'OK'])
        assert result.exit_code == DATA_ERROR
        assert _json_lines(result.output)[0]['type'] == 'CertificateError'

    def test_quiet(self, runner, repo, tmp_path):
        cert = _write_cert(tmp_path, "c1", "refs/heads/main")
        result = runner.invoke(cli, ['-C', repo, 'accept', '-f', cert, '-s', 'OK', '--quiet'])
        assert result.exit_code == 0
        assert _json_lines(result.output) == []

    def test_not_a_repository(self, runner, isolated_home, tmp_path, monkeypatch):
        plain = tmp_path / "plain"
        plain.mkdir()
        monkeypatch.setenv('GIT_CEILING_DIRECTORIES', str(tmp_path))
        cert = _write_cert(tmp_path, "c1", "refs/heads/main")

        result = runner.invoke(cli, ['-C', str(plain), 'accept', '-f', cert, '-s', 'OK'])

        assert result.exit_code == NO_REPOSITORY
        assert _json_lines(result.output)[0]['type'] == 'NotARepositoryError'


class TestLogSweepStatus:
    """pushlog log / sweep / status"""

    def _accept(self, runner, repo, tmp_path, *refs, nonce, threshold=1):
        cert = _write_cert(tmp_path, nonce, *refs, nonce=nonce)
        result = runner.invoke(
            cli, ['-C', repo, 'accept', '-f', cert, '-s', 'OK', '-t', str(threshold)]
        )
        assert result.exit_code == 0, result.output

    def test_log_by_ref(self, runner, repo, tmp_path):
        self._accept(runner, repo, tmp_path, "refs/heads/main", nonce="a")
        self._accept(runner, repo, tmp_path, "refs/heads/dev", nonce="b")

        result = runner.invoke(cli, ['-C', repo, 'log', 'refs/heads/main', '--no-table'])
        assert result.exit_code == 0, result.output
        entries = _json_lines(result.output)
        assert len(entries) == 1
        assert entries[0]['refs'] == ['refs/heads/main']
        assert 'certificate' not in entries[0]

        result = runner.invoke(cli, ['-C', repo, 'log', '--no-table', '-c'])
        entries = _json_lines(result.output)
        assert [e['refs'] for e in entries] == [['refs/heads/main'], ['refs/heads/dev']]
        assert entries[1]['certificate'] == make_cert("refs/heads/dev", nonce="b").decode()

    def test_log_table(self, runner, repo, tmp_path):
        self._accept(runner, repo, tmp_path, "refs/heads/main", nonce="a")
        result = runner.invoke(cli, ['-C', repo, 'log', '--table'])
        assert result.exit_code == 0, result.output
        assert _json_lines(result.output) == []

    def test_sweep(self, runner, repo, tmp_path):
        self._accept(runner, repo, tmp_path, "refs/heads/main", nonce="a", threshold=5)

        result = runner.invoke(cli, ['-C', repo, 'sweep'])
        assert result.exit_code == 0, result.output
        [summary] = _json_lines(result.output)
        assert summary['archived'] == 1
        assert summary['entries'][0]['refs'] == ['refs/heads/main']

        result = runner.invoke(cli, ['-C', repo, 'sweep'])
        assert _json_lines(result.output)[0]['archived'] == 0

    def test_status(self, runner, repo, tmp_path):
        self._accept(runner, repo, tmp_path, "refs/heads/main", nonce="a", threshold=5)
        result = runner.invoke(cli, ['-C', repo, 'status', '--no-table'])
        assert result.exit_code == 0, result.output
        [status] = _json_lines(result.output)
        assert status['pending'] == 1
        assert status['head'] is None
        assert status['locks'] == {'collect': False, 'archive': False}

    def test_status_table(self, runner, repo):
        result = runner.invoke(cli, ['-C', repo, 'status', '--table'])
        assert result.exit_code == 0, result.output

    def test_threshold_from_environment(self, runner, repo, tmp_path, monkeypatch):
        monkeypatch.setenv('PUSHLOG_ARCHIVE_THRESHOLD', '3')
        cert = _write_cert(tmp_path, "c1", "refs/heads/main")
        result = runner.invoke(cli, ['-C', repo, 'accept', '-f', cert, '-s', 'OK'])
        assert _json_lines(result.output)[0]['batch'] is None

    def test_bad_config(self, runner, repo, isolated_home):
        config_dir = isolated_home / '.pushlog'
        config_dir.mkdir()
        (config_dir / 'config.json').write_text('{oops')
        result = runner.invoke(cli, ['-C', repo, 'status'])
        assert result.exit_code == CONFIG_ERROR
        assert _json_lines(result.output)[0]['type'] == 'ConfigError'


class TestConfigCommand:
    """pushlog config"""

    def test_show(self, runner, isolated_home):
        result = runner.invoke(cli, ['config', 'show'])
        assert result.exit_code == 0
        assert json.loads(result.output)['archive']['threshold'] == 1

    def test_path(self, runner, isolated_home):
        result = runner.invoke(cli, ['config', 'path'])
        assert json.loads(result.output)['config_path'] == str(isolated_home / '.pushlog' / 'config.json')

    def test_init(self, runner, isolated_home):
        result = runner.invoke(cli, ['config', 'init'])
        assert result.exit_code == 0, result.output
        path = isolated_home / '.pushlog' / 'config.json'
        assert json.loads(path.read_text())['ingest']['accepted_status'] == 'OK'

        result = runner.invoke(cli, ['config', 'init'])
        assert result.exit_code != 0
        assert 'already exists' in result.output

        result = runner.invoke(cli, ['config', 'init', '--force'])
        assert result.exit_code == 0

    def test_init_toml(self, runner, isolated_home, tmp_path):
        target = tmp_path / 'pushlog.toml'
        result = runner.invoke(cli, ['config', 'init', '--path', str(target)])
        assert result.exit_code == 0, result.output
        assert '[archive]' in target.read_text()

    def test_config_works_with_broken_repo_path(self, runner, isolated_home):
        result = runner.invoke(cli, ['-C', '/nonexistent', 'config', 'path'])
        assert result.exit_code == 0
