"""
Shared fixtures: throwaway git repositories and push certificates.
"""

import hashlib
import os
import subprocess

import pytest

from pushlog.config import get_default_config
from pushlog.services import ArchiveService

ZERO_OID = "0" * 40


def make_cert(*refs, nonce="1700000000-4b5d1a", pusher="Alice <alice@example.com> 1700000000 +0000",
              signed=True, trailing_newline=True):
    """Build push certificate bytes covering ``refs``."""
    lines = [
        "certificate version 0.1",
        f"pusher {pusher}",
        "pushee ssh://git.example.com/project.git",
        f"nonce {nonce}",
        "",
    ]
    for ref in refs:
        new_oid = hashlib.sha1(f"{nonce}:{ref}".encode()).hexdigest()
        lines.append(f"{ZERO_OID} {new_oid} {ref}")
    if signed:
        lines += [
            "-----BEGIN PGP SIGNATURE-----",
            "",
            "iQEzBAABCAAdFiEEexampleexampleexampleexampleAAoJEExample",
            "-----END PGP SIGNATURE-----",
        ]
    text = "\n".join(lines)
    if trailing_newline:
        text += "\n"
    return text.encode("utf-8")


def git(repo, *args, input=None):
    """Run git in ``repo`` and return stripped stdout."""
    result = subprocess.run(
        ["git", *args], cwd=repo, input=input, capture_output=True, check=True
    )
    return result.stdout.decode("utf-8").strip()


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at an empty directory and drop PUSHLOG_* overrides."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("PUSHLOG_"):
            monkeypatch.delenv(key)
    return home


@pytest.fixture
def git_repo(tmp_path):
    """A fresh bare repository."""
    repo = tmp_path / "project.git"
    subprocess.run(["git", "init", "-q", "--bare", str(repo)], capture_output=True, check=True)
    return repo


@pytest.fixture
def config():
    return get_default_config()


@pytest.fixture
def service(git_repo, config):
    return ArchiveService(str(git_repo), config=config)
