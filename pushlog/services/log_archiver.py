"""
Log archiver for pushlog.

Folds one batch into the certificate log. For each certificate, in the
order it was accepted, a commit is built on top of the previous one:

    tree    = parent tree with every covered ref name -> certificate blob
    parent  = previous entry (or the empty root for a fresh log)
    message = the certificate bytes, verbatim

Nothing is visible until the log ref moves to the last commit of the
batch, and that move is a compare-and-swap against the head the batch was
built on. Commits built by an interrupted pass stay unreachable.

Before moving the ref, the intended head is written to the batch's
``target`` file. A batch whose target is already contained in the log was
committed by a pass that died before cleaning up, and is only discarded.
"""

from typing import Dict, List, Optional
import logging

from ..domain import Batch, Certificate, LogEntry
from ..exit_codes import ArchiveError, CertificateError, GitError
from ..infra import GitClient, StateArea, LockCoordinator

logger = logging.getLogger(__name__)

ROOT_MESSAGE = b"push certificate log\n"


class LogArchiver:
    """
    Commits rotated batches onto the log ref.

    Example:
        archiver = LogArchiver(git, state, locks, log_ref="refs/push-certs")
        entries = archiver.commit(batch_id)
        new_head = entries[-1].commit if entries else None
    """

    def __init__(
        self,
        git: GitClient,
        state: StateArea,
        locks: LockCoordinator,
        log_ref: str = "refs/push-certs",
        identity: Optional[Dict[str, str]] = None,
    ):
        self.git = git
        self.state = state
        self.locks = locks
        self.log_ref = log_ref
        self.identity = identity or {}

    def head(self) -> Optional[str]:
        """Current log head, or None if the log was never started."""
        return self.git.resolve_ref(self.log_ref)

    def commit(self, batch_id: str) -> List[LogEntry]:
        """
        Archive one batch under the archival lock.

        Returns:
            The new log entries in chain order; the last one is the new
            head. Empty if the batch was empty, already archived, or gone.
            Certificates already reachable from the log head are skipped.

        Raises:
            ArchiveError: If any certificate is missing or unreadable, or
                the log head moved underneath the batch. The log head is
                unchanged and the staging area is left in place.
        """
        with self.locks.archival():
            return self.commit_locked(batch_id)

    def commit_locked(self, batch_id: str) -> List[LogEntry]:
        """Same as commit, for callers already holding the archival lock."""
        batch = self.state.load_batch(batch_id)
        if batch is None:
            logger.debug(f"Batch {batch_id} no longer staged")
            return []

        # Only one pass holds the archival lock, so any index left here is stale
        self.state.clear_index(batch_id)

        head = self.head()

        target = self.state.read_target(batch_id)
        if target and head and self.git.is_ancestor(target, head):
            logger.info(f"Batch {batch_id} was already archived at {target[:12]}; discarding")
            self.state.discard(batch_id)
            return []

        if not batch.content_ids:
            logger.info(f"Batch {batch_id} is empty; discarding")
            self.state.discard(batch_id)
            return []

        parent = head or self._create_root()
        entries = self._thread(batch, parent)

        if not entries:
            logger.info(f"Every certificate in batch {batch_id} is already archived")
            self.state.discard(batch_id)
            return []

        new_head = entries[-1].commit
        self.state.write_target(batch_id, new_head)

        try:
            self.git.update_ref(
                self.log_ref, new_head, head,
                reason=f"pushlog: archive batch {batch_id}",
            )
        except GitError as e:
            raise ArchiveError(
                f"Could not move {self.log_ref} for batch {batch_id}: {e}", batch_id
            ) from e

        self.state.discard(batch_id)
        logger.info(
            f"Archived batch {batch_id}: {len(entries)} certificate(s), "
            f"{self.log_ref} -> {new_head[:12]}"
        )
        return entries

    def _create_root(self) -> str:
        """Empty-tree commit every log chain starts from."""
        try:
            tree = self.git.empty_tree()
            root = self.git.commit_tree(tree, ROOT_MESSAGE, identity=self.identity)
        except GitError as e:
            raise ArchiveError(f"Could not create log root: {e}") from e
        logger.debug(f"Starting new log at root {root[:12]}")
        return root

    def _thread(self, batch: Batch, parent: str) -> List[LogEntry]:
        """Build one commit per certificate, chained from ``parent``."""
        entries: List[LogEntry] = []
        running = parent

        try:
            tree = self.git.tree_of(parent)
        except GitError as e:
            raise ArchiveError(f"Could not read log head {parent}: {e}", batch.id) from e

        for content_id in batch.content_ids:
            try:
                archived_in = self.git.find_object(parent, content_id)
            except GitError as e:
                raise ArchiveError(f"Could not search the log for {content_id}: {e}", batch.id) from e
            if archived_in:
                logger.warning(
                    f"Certificate {content_id[:12]} is already in the log at {archived_in[:12]}; skipping"
                )
                continue

            try:
                raw = self.git.cat_blob(content_id)
            except GitError as e:
                raise ArchiveError(
                    f"Certificate {content_id} in batch {batch.id} is missing or unreadable", batch.id
                ) from e

            try:
                refs = Certificate.parse(raw).ref_names
            except CertificateError as e:
                raise ArchiveError(
                    f"Certificate {content_id} in batch {batch.id} is malformed: {e}", batch.id
                ) from e

            try:
                new_tree = self.git.write_tree(
                    tree,
                    {ref: content_id for ref in refs},
                    self.state.index_file(batch.id),
                )
                commit = self.git.commit_tree(new_tree, raw, parent=running, identity=self.identity)
            except GitError as e:
                raise ArchiveError(
                    f"Could not build log entry for {content_id} in batch {batch.id}: {e}", batch.id
                ) from e

            entries.append(LogEntry(
                commit=commit,
                parent=running,
                content_id=content_id,
                refs=tuple(refs),
            ))
            running, tree = commit, new_tree

        return entries
