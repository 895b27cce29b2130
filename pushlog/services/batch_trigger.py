"""
Batch trigger for pushlog.

Decides when the pending set is large enough to archive and hands it off
by renaming the pending directory into a fresh staging area.
"""

from typing import Optional
import logging

from ..config import get_threshold
from ..domain import new_batch_id
from ..infra import StateArea, LockCoordinator

logger = logging.getLogger(__name__)


class BatchTrigger:
    """
    Rotates the pending set into a batch once it reaches the threshold.

    Example:
        trigger = BatchTrigger(state, locks, threshold=10)
        batch_id = trigger.maybe_rotate()
        if batch_id:
            archiver.commit(batch_id)
    """

    def __init__(self, state: StateArea, locks: LockCoordinator, threshold: int = 1):
        self.state = state
        self.locks = locks
        self.threshold = get_threshold({}, threshold)

    def maybe_rotate(self, threshold: Optional[int] = None) -> Optional[str]:
        """
        Rotate under the collection lock if enough certificates are pending.

        Args:
            threshold: Override for this call (must be >= 1)

        Returns:
            The new batch id, or None if below threshold
        """
        with self.locks.collection():
            return self.rotate_locked(threshold)

    def rotate_locked(self, threshold: Optional[int] = None) -> Optional[str]:
        """Same as maybe_rotate, for callers already holding the collection lock."""
        limit = get_threshold({}, threshold if threshold is not None else self.threshold)

        count = len(self.state.pending_ids())
        if count < limit:
            logger.debug(f"{count} pending certificate(s), threshold {limit}: not rotating")
            return None

        batch_id = new_batch_id()
        while self.state.staging_dir(batch_id).exists():
            batch_id = new_batch_id()

        self.state.rotate(batch_id)
        logger.info(f"Rotated {count} pending certificate(s) into batch {batch_id}")
        return batch_id
