"""
Manifest file infrastructure for pushlog.

A manifest is an ordered list of certificate content-ids, one per line.
It is never edited in place:
- Writes go to a temp file in the same directory, then rename
- The temp file is fsynced before the rename
- A reader sees either the old list or the new list, never a torn one
"""

import os
import tempfile
from pathlib import Path
from typing import Iterable, List
import logging

logger = logging.getLogger(__name__)


class Manifest:
    """
    Ordered content-id list with atomic replacement.

    Callers serialize writers themselves (the collection lock); the
    manifest only guarantees that each write is all-or-nothing.

    Example:
        manifest = Manifest(Path(".git/push-certs/pending/manifest"))
        manifest.append("3b18e512dba79e4c8300dd08aeb37f8e728b8dad")
        ids = manifest.read()
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _write_atomic(self, ids: Iterable[str]) -> None:
        """Write ids atomically using temp file and rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, 'w') as f:
                for content_id in ids:
                    f.write(content_id + '\n')
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            os.replace(temp_path, self.path)

        except BaseException:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def read(self) -> List[str]:
        """
        Read all ids in append order.

        Returns:
            List of content-ids (empty if the manifest does not exist)
        """
        try:
            with open(self.path, 'r') as f:
                return [line.strip() for line in f if line.strip()]
        except FileNotFoundError:
            return []

    def write(self, ids: Iterable[str]) -> None:
        """Replace the whole manifest."""
        self._write_atomic(list(ids))

    def append(self, content_id: str) -> bool:
        """
        Append an id unless it is already listed.

        Returns:
            True if the id was added, False if it was already present
        """
        ids = self.read()
        if content_id in ids:
            return False
        ids.append(content_id)
        self._write_atomic(ids)
        return True
