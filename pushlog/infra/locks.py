"""
Advisory file locks for pushlog.

Two independent lock domains guard the state directory:
- collection: appending to the pending manifest and rotating it
- archival: threading a batch onto the log and moving the log head

Producers only ever take the collection lock, so a slow archival pass
never stalls a push. Locks block without a timeout; a stuck holder stalls
its own domain until it exits (the kernel drops flock locks when the
holding process dies).
"""

import fcntl
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator
import logging

logger = logging.getLogger(__name__)

COLLECTION = "collect"
ARCHIVAL = "archive"


class FileLock:
    """
    Exclusive ``flock`` on a sidecar lock file.

    Each acquisition opens its own file description, so two FileLock
    objects on the same path exclude each other across processes and
    across threads of one process.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Block until the lock is acquired; release on every exit path."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a+", encoding="utf-8") as handle:
            logger.debug(f"Waiting for lock {self.path}")
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            logger.debug(f"Acquired lock {self.path}")
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
                logger.debug(f"Released lock {self.path}")

    def is_held(self) -> bool:
        """Check without blocking. True if another holder has the lock."""
        if not self.path.exists():
            return False
        with self.path.open("a+", encoding="utf-8") as handle:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                return True
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            return False


class LockCoordinator:
    """
    Named locks scoped to one state directory.

    Example:
        locks = LockCoordinator(Path(".git/push-certs"))
        with locks.collection():
            ...
        with locks.archival():
            ...
    """

    def __init__(self, state_root: Path):
        self.state_root = Path(state_root)
        self._locks: Dict[str, FileLock] = {
            name: FileLock(self.state_root / f"{name}.lock")
            for name in (COLLECTION, ARCHIVAL)
        }

    def collection(self):
        """Guards the pending manifest and the rotate handoff."""
        return self._locks[COLLECTION].hold()

    def archival(self):
        """Guards the log head; one commit in flight at a time."""
        return self._locks[ARCHIVAL].hold()

    def states(self) -> Dict[str, bool]:
        """Lock name -> currently held, for health checks."""
        return {name: lock.is_held() for name, lock in self._locks.items()}
