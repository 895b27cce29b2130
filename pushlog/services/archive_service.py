"""
Archive service for pushlog.

Wires the certificate store, batch trigger and log archiver to one
repository and exposes the operations the hook and the CLI use:

- ingest: accept one certificate, rotate if the threshold is reached,
  and archive what was rotated
- sweep: rotate whatever is pending and archive every staged batch
- history: certificates that touched a ref, oldest first
- status: pending count, staged batches, log head, lock states
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import logging

from ..config import load_config, get_threshold
from ..domain import Certificate, LogEntry
from ..exit_codes import CertificateError
from ..infra import GitClient, StateArea, LockCoordinator
from .certificate_store import CertificateStore
from .batch_trigger import BatchTrigger
from .log_archiver import LogArchiver

logger = logging.getLogger(__name__)


class ArchiveService:
    """
    Push-certificate archive for one repository.

    Example:
        service = ArchiveService("/srv/git/project.git")

        # From a post-receive hook
        service.ingest(cert_bytes, status="OK")

        # From cron
        service.sweep()

        for entry in service.history("refs/heads/main"):
            print(entry.commit, entry.certificate.decode())
    """

    def __init__(
        self,
        repo_path: str = ".",
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None,
    ):
        """
        Initialize ArchiveService.

        Args:
            repo_path: Path to the repository (work tree or bare)
            config: Configuration dict (loads the user config if None)
            git_client: Git client instance (creates default if None)

        Raises:
            NotARepositoryError: If repo_path is not a git repository
            ConfigError: If the threshold is invalid
        """
        self.config = config if config is not None else load_config()
        archive_config = self.config.get('archive', {})
        timeout = self.config.get('git', {}).get('timeout_seconds', 60)

        self.git = git_client or GitClient(repo_path, timeout=timeout)
        self.git_dir = self.git.git_dir()

        state_dir = Path(archive_config.get('state_dir', 'push-certs')).expanduser()
        self.state_root = state_dir if state_dir.is_absolute() else self.git_dir / state_dir

        self.log_ref = archive_config.get('log_ref', 'refs/push-certs')
        self.threshold = get_threshold(self.config)

        self.state = StateArea(self.state_root)
        self.locks = LockCoordinator(self.state_root)
        self.store = CertificateStore(self.git, self.state, self.locks)
        self.trigger = BatchTrigger(self.state, self.locks, self.threshold)
        self.archiver = LogArchiver(
            self.git, self.state, self.locks,
            log_ref=self.log_ref,
            identity=archive_config.get('identity'),
        )

    @property
    def accepted_status(self) -> str:
        return self.config.get('ingest', {}).get('accepted_status', 'OK')

    def ingest(
        self,
        cert_bytes: bytes,
        status: Optional[str],
        threshold: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Accept one certificate and archive if the threshold is reached.

        A certificate whose nonce status is not the accepted status is
        dropped without writing anything.

        Args:
            cert_bytes: Raw certificate
            status: Replay-protection status reported by git
            threshold: Batch threshold override for this call

        Returns:
            Summary dict: accepted, certificate id, rotated batch, archived
            entries
        """
        if status != self.accepted_status:
            return self._drop(status)

        content_id = self.store.accept(cert_bytes)
        batch_id = self.trigger.maybe_rotate(threshold)

        entries: List[LogEntry] = []
        if batch_id:
            entries = self.flush()

        return {
            'accepted': True,
            'certificate_id': content_id,
            'batch': batch_id,
            'archived': len(entries),
            'head': self.archiver.head(),
        }

    def ingest_from_env(
        self,
        environ: Optional[Mapping[str, str]] = None,
        threshold: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Ingest the certificate git hands to a receive hook.

        Reads the certificate blob named by ``GIT_PUSH_CERT`` and the status
        in ``GIT_PUSH_CERT_NONCE_STATUS`` (names configurable).

        Returns:
            The ingest summary, or None for an unsigned push
        """
        environ = os.environ if environ is None else environ
        ingest_config = self.config.get('ingest', {})
        cert_var = ingest_config.get('cert_variable', 'GIT_PUSH_CERT')
        status_var = ingest_config.get('status_variable', 'GIT_PUSH_CERT_NONCE_STATUS')

        cert_oid = environ.get(cert_var)
        if not cert_oid:
            logger.debug(f"{cert_var} not set; push was not signed")
            return None

        status = environ.get(status_var)
        if status != self.accepted_status:
            return self._drop(status)

        cert_bytes = self.git.cat_blob(cert_oid)
        return self.ingest(cert_bytes, status, threshold)

    def _drop(self, status: Optional[str]) -> Dict[str, Any]:
        logger.info(f"Dropping certificate with nonce status {status!r}")
        return {'accepted': False, 'status': status}

    def flush(self) -> List[LogEntry]:
        """
        Archive every staged batch, oldest rotation first.

        Stops at the first batch that fails so later batches are never
        committed ahead of it.

        Raises:
            ArchiveError: From the first failing batch
        """
        entries: List[LogEntry] = []
        with self.locks.archival():
            self.state.purge_discarded()
            for batch_id in self.state.staging_ids():
                entries.extend(self.archiver.commit_locked(batch_id))
        return entries

    def sweep(self) -> Dict[str, Any]:
        """
        Rotate any pending certificates and archive all staged batches.

        Picks up batches left behind by an interrupted archival pass.
        Sweeping with nothing pending or staged changes nothing.
        """
        with self.locks.collection():
            batch_id = self.trigger.rotate_locked(1)

        entries = self.flush()
        return {
            'batch': batch_id,
            'archived': len(entries),
            'entries': [e.to_dict() for e in entries],
            'head': self.archiver.head(),
        }

    def history(self, ref: str, with_certificates: bool = True) -> List[LogEntry]:
        """
        Log entries whose certificate covered ``ref``, oldest first.

        The certificate bytes are read from the entry's tree and are
        byte-for-byte what was accepted.
        """
        if self.archiver.head() is None:
            return []

        entries = []
        for commit, parent in self.git.log(self.log_ref, ref):
            blob = self.git.resolve_path(commit, ref)
            # A later ref such as refs/heads/foo/bar turns the path into a tree
            if blob is None or self.git.object_type(blob) != 'blob':
                continue
            raw = self.git.cat_blob(blob)
            entries.append(LogEntry(
                commit=commit,
                parent=parent,
                content_id=blob,
                refs=tuple(_refs_of(raw)),
                certificate=raw if with_certificates else None,
            ))
        return entries

    def entries(self, with_certificates: bool = False) -> List[LogEntry]:
        """Every log entry, oldest first (the empty root excluded)."""
        if self.archiver.head() is None:
            return []

        entries = []
        for commit, parent in self.git.log(self.log_ref):
            if parent is None:
                continue
            raw = self.git.commit_message(commit)
            entries.append(LogEntry(
                commit=commit,
                parent=parent,
                content_id=self.git.hash_object(raw, write=False),
                refs=tuple(_refs_of(raw)),
                certificate=raw if with_certificates else None,
            ))
        return entries

    def status(self) -> Dict[str, Any]:
        """Snapshot of the archive state, for operators and health checks."""
        head = self.archiver.head()
        return {
            'git_dir': str(self.git_dir),
            'state_dir': str(self.state_root),
            'log_ref': self.log_ref,
            'head': head,
            'entries': self.git.count_commits(self.log_ref) - 1 if head else 0,
            'threshold': self.threshold,
            'pending': len(self.state.pending_ids()),
            'staging': self.state.staging_ids(),
            'locks': self.locks.states(),
        }


def _refs_of(raw: bytes) -> List[str]:
    try:
        return Certificate.parse(raw).ref_names
    except CertificateError:
        return []
