"""
Certificate store for pushlog.

Accepts one certificate per push: the bytes go into the repository's
object database, then the blob id goes onto the pending manifest. The
order matters. A crash between the two leaves an unreferenced blob (which
git garbage-collects), never a manifest entry without its blob.
"""

import logging

from ..domain import Certificate
from ..exit_codes import GitError, IngestError
from ..infra import GitClient, StateArea, LockCoordinator

logger = logging.getLogger(__name__)


class CertificateStore:
    """
    Writes certificates and records them as pending.

    Example:
        store = CertificateStore(git, state, locks)
        content_id = store.accept(cert_bytes)
    """

    def __init__(self, git: GitClient, state: StateArea, locks: LockCoordinator):
        self.git = git
        self.state = state
        self.locks = locks

    def accept(self, cert_bytes: bytes) -> str:
        """
        Store a certificate and append it to the pending set.

        Re-accepting identical bytes before rotation returns the same id
        without adding a second manifest line.

        Returns:
            The certificate's content-id (git blob id)

        Raises:
            CertificateError: If the bytes are empty or malformed
            IngestError: If the blob or manifest write fails
        """
        certificate = Certificate.parse(cert_bytes)

        try:
            content_id = self.git.hash_object(cert_bytes)
        except GitError as e:
            raise IngestError(f"Could not store certificate blob: {e}") from e

        with self.locks.collection():
            try:
                added = self.state.pending_manifest().append(content_id)
            except OSError as e:
                raise IngestError(f"Could not record pending certificate {content_id}: {e}") from e

        if added:
            logger.info(f"Accepted certificate {content_id[:12]} for {', '.join(certificate.ref_names)}")
        else:
            logger.info(f"Certificate {content_id[:12]} is already pending")
        return content_id
