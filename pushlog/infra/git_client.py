"""
Git client infrastructure for pushlog.

Provides a clean abstraction over the git plumbing commands pushlog needs.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

The repository's object database is the content-addressed store for
certificates, and log entries are ordinary commits, so everything pushlog
writes can be inspected with stock git.
"""

import os
import subprocess
from typing import Dict, List, Optional, Tuple
from pathlib import Path
import logging

from ..exit_codes import GitError, NotARepositoryError

logger = logging.getLogger(__name__)

BLOB_MODE = "100644"


class GitClient:
    """
    Abstraction over git commands for a single repository.

    Example:
        client = GitClient("/srv/git/project.git")
        blob = client.hash_object(b"hello\\n")
        assert client.cat_blob(blob) == b"hello\\n"
    """

    def __init__(self, repo_path: str = ".", timeout: int = 60):
        """
        Initialize GitClient.

        Args:
            repo_path: Path to the repository (work tree or bare)
            timeout: Command timeout in seconds (default: 60)
        """
        self.repo_path = str(Path(repo_path).expanduser())
        self.timeout = timeout

    def _run(
        self,
        args: List[str],
        input: Optional[bytes] = None,
        env: Optional[Dict[str, str]] = None,
        check: bool = True,
    ) -> Tuple[bytes, int]:
        """
        Run a git command.

        Args:
            args: Arguments after ``git``
            input: Bytes fed to stdin
            env: Extra environment variables
            check: Raise GitError on non-zero exit

        Returns:
            Tuple of (stdout bytes, returncode)
        """
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        try:
            result = subprocess.run(
                ['git'] + args,
                cwd=self.repo_path,
                input=input,
                capture_output=True,
                env=full_env,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: git {' '.join(args)}")
            raise GitError(args, -1, f"timed out after {self.timeout}s")
        except OSError as e:
            logger.error(f"Git command failed: git {' '.join(args)} - {e}")
            raise GitError(args, -1, str(e)) from e

        if check and result.returncode != 0:
            stderr = result.stderr.decode('utf-8', errors='replace')
            logger.debug(f"git {' '.join(args)} exited {result.returncode}: {stderr.strip()}")
            raise GitError(args, result.returncode, stderr)

        return result.stdout, result.returncode

    def _run_text(self, args: List[str], **kwargs) -> str:
        output, _ = self._run(args, **kwargs)
        return output.decode('utf-8').strip()

    def git_dir(self) -> Path:
        """
        Absolute path of the repository's git directory.

        Raises:
            NotARepositoryError: If repo_path is not inside a git repository
        """
        output, code = self._run(['rev-parse', '--absolute-git-dir'], check=False)
        if code != 0:
            raise NotARepositoryError(self.repo_path)
        return Path(output.decode('utf-8').strip())

    def hash_object(self, data: bytes, write: bool = True) -> str:
        """Store bytes as a blob and return its object id."""
        args = ['hash-object', '--stdin']
        if write:
            args.insert(1, '-w')
        return self._run_text(args, input=data)

    def cat_blob(self, oid: str) -> bytes:
        """Return the exact bytes of a blob."""
        output, _ = self._run(['cat-file', 'blob', oid])
        return output

    def object_type(self, oid: str) -> Optional[str]:
        """Object type (blob, tree, commit, tag), or None if it does not exist."""
        output, code = self._run(['cat-file', '-t', oid], check=False)
        if code != 0:
            return None
        return output.decode('utf-8').strip()

    def resolve_ref(self, ref: str) -> Optional[str]:
        """Object id a ref points at, or None if the ref does not exist."""
        output, code = self._run(['rev-parse', '--verify', '--quiet', f"{ref}^{{commit}}"], check=False)
        if code != 0:
            return None
        return output.decode('utf-8').strip()

    def resolve_path(self, commit: str, path: str) -> Optional[str]:
        """Object id stored at ``path`` in a commit's tree, or None."""
        output, code = self._run(['rev-parse', '--verify', '--quiet', f"{commit}:{path}"], check=False)
        if code != 0:
            return None
        return output.decode('utf-8').strip()

    def tree_of(self, commit: str) -> str:
        return self._run_text(['rev-parse', f"{commit}^{{tree}}"])

    def empty_tree(self) -> str:
        """Write (if needed) and return the empty tree."""
        return self._run_text(['mktree'], input=b'')

    def write_tree(self, base_tree: str, entries: Dict[str, str], index_file: Path) -> str:
        """
        Build a tree from ``base_tree`` with ``entries`` (path -> blob id)
        added or replaced.

        A throwaway index file keeps this off the repository's own index.
        Nested paths such as ``refs/heads/main`` become nested trees.
        """
        env = {'GIT_INDEX_FILE': str(index_file)}
        try:
            self._run(['read-tree', base_tree], env=env)
            for path, oid in entries.items():
                self._run(
                    ['update-index', '--add', '--replace', '--cacheinfo', f"{BLOB_MODE},{oid},{path}"],
                    env=env,
                )
            return self._run_text(['write-tree'], env=env)
        finally:
            if index_file.exists():
                index_file.unlink()

    def commit_tree(
        self,
        tree: str,
        message: bytes,
        parent: Optional[str] = None,
        identity: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Create a commit object and return its id.

        The message is passed on stdin unmodified.
        """
        args = ['commit-tree', tree]
        if parent:
            args += ['-p', parent]
        env = {}
        if identity:
            name = identity.get('name', 'pushlog')
            email = identity.get('email', 'pushlog@localhost')
            env = {
                'GIT_AUTHOR_NAME': name,
                'GIT_AUTHOR_EMAIL': email,
                'GIT_COMMITTER_NAME': name,
                'GIT_COMMITTER_EMAIL': email,
            }
        return self._run_text(args, input=message, env=env)

    def update_ref(self, ref: str, new: str, old: Optional[str], reason: str = "") -> None:
        """
        Point ``ref`` at ``new`` only if it currently points at ``old``.

        ``old=None`` requires the ref not to exist yet.
        """
        args = ['update-ref']
        if reason:
            args += ['-m', reason]
        args += [ref, new, old or '']
        self._run(args)

    def commit_message(self, commit: str) -> bytes:
        """The exact message bytes of a commit (everything after the header)."""
        raw, _ = self._run(['cat-file', 'commit', commit])
        _, sep, message = raw.partition(b'\n\n')
        return message if sep else b''

    def count_commits(self, ref: str) -> int:
        return int(self._run_text(['rev-list', '--count', ref]))

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True if ``ancestor`` is reachable from (or equal to) ``descendant``."""
        _, code = self._run(['merge-base', '--is-ancestor', ancestor, descendant], check=False)
        if code in (0, 1):
            return code == 0
        # Unknown object, e.g. an orphan pruned by gc
        return False

    def find_object(self, rev: str, oid: str) -> Optional[str]:
        """Most recent commit reachable from ``rev`` that added or removed ``oid``."""
        output = self._run_text(['log', '-n', '1', '--format=%H', f"--find-object={oid}", rev])
        return output or None

    def log(self, ref: str, path: Optional[str] = None) -> List[Tuple[str, Optional[str]]]:
        """
        Commits reachable from ``ref``, oldest first, optionally limited to
        those that changed ``path``.

        Returns:
            List of (commit, parent) tuples
        """
        args = ['log', '--format=%H %P', '--reverse', ref]
        if path:
            # Pathspec relative to the top of the tree, taken literally
            args += ['--', f":(top,literal){path}"]
        output = self._run_text(args)

        commits = []
        for line in output.splitlines():
            parts = line.split()
            if not parts:
                continue
            commits.append((parts[0], parts[1] if len(parts) > 1 else None))
        return commits
