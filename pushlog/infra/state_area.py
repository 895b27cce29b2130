"""
On-disk layout of pushlog's working state.

    <git-dir>/push-certs/
        collect.lock
        archive.lock
        pending/manifest              ids awaiting rotation
        staging/<batch-id>/manifest   one rotated batch
        staging/<batch-id>/target     head a commit of this batch moves to
        staging/.discard-<batch-id>/  archived batch being removed

Rotation is a single directory rename of ``pending`` into ``staging``, so
a concurrent reader sees the pending set either whole or gone.
"""

import os
import shutil
from pathlib import Path
from typing import List, Optional
import logging

from ..domain import Batch
from .manifest import Manifest

logger = logging.getLogger(__name__)

MANIFEST = "manifest"
TARGET = "target"
DISCARD_PREFIX = ".discard-"


class StateArea:
    """Paths and filesystem moves for the pending and staging areas."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.pending_dir = self.root / "pending"
        self.staging_root = self.root / "staging"

    def pending_manifest(self) -> Manifest:
        return Manifest(self.pending_dir / MANIFEST)

    def pending_ids(self) -> List[str]:
        return self.pending_manifest().read()

    def rotate(self, batch_id: str) -> Path:
        """
        Move the whole pending area to ``staging/<batch_id>``.

        The next append recreates an empty pending area.
        """
        self.staging_root.mkdir(parents=True, exist_ok=True)
        destination = self.staging_root / batch_id
        if destination.exists():
            raise FileExistsError(f"Staging area already exists: {destination}")
        os.rename(self.pending_dir, destination)
        return destination

    def staging_ids(self) -> List[str]:
        """Batch ids awaiting archival, oldest rotation first."""
        if not self.staging_root.is_dir():
            return []
        return sorted(
            entry.name for entry in self.staging_root.iterdir()
            if entry.is_dir() and not entry.name.startswith('.')
        )

    def staging_dir(self, batch_id: str) -> Path:
        return self.staging_root / batch_id

    def load_batch(self, batch_id: str) -> Optional[Batch]:
        """The batch in a staging area, or None if it no longer exists."""
        directory = self.staging_dir(batch_id)
        if not directory.is_dir():
            return None
        ids = Manifest(directory / MANIFEST).read()
        return Batch(id=batch_id, content_ids=tuple(ids))

    def read_target(self, batch_id: str) -> Optional[str]:
        ids = Manifest(self.staging_dir(batch_id) / TARGET).read()
        return ids[0] if ids else None

    def write_target(self, batch_id: str, commit: str) -> None:
        Manifest(self.staging_dir(batch_id) / TARGET).write([commit])

    def index_file(self, batch_id: str) -> Path:
        """Scratch index used while building trees for a batch."""
        return self.staging_dir(batch_id) / "index"

    def clear_index(self, batch_id: str) -> None:
        """Remove a scratch index and its lock left by a killed pass."""
        index = self.index_file(batch_id)
        for path in (index, index.with_name(index.name + ".lock")):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            logger.warning(f"Removed stale {path.name} from batch {batch_id}")

    def discard(self, batch_id: str) -> None:
        """
        Remove an archived batch.

        The rename takes the batch out of ``staging_ids`` in one step, so an
        interrupted removal can never make the batch look pending again.
        """
        directory = self.staging_dir(batch_id)
        trash = self.staging_root / f"{DISCARD_PREFIX}{batch_id}"
        os.rename(directory, trash)
        shutil.rmtree(trash)

    def purge_discarded(self) -> int:
        """Finish removals interrupted by a crash. Returns the count removed."""
        if not self.staging_root.is_dir():
            return 0
        removed = 0
        for entry in self.staging_root.iterdir():
            if entry.is_dir() and entry.name.startswith(DISCARD_PREFIX):
                shutil.rmtree(entry)
                removed += 1
        if removed:
            logger.info(f"Removed {removed} leftover archived staging area(s)")
        return removed
