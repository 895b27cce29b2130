"""
Service layer for pushlog.

Contains the archival logic that orchestrates domain objects and
infrastructure:
- CertificateStore: Store a certificate and mark it pending
- BatchTrigger: Rotate the pending set into a batch
- LogArchiver: Thread a batch onto the log ref
- ArchiveService: One repository's archive, as used by the hook and CLI

Services are the primary API for commands to use.
"""

from .certificate_store import CertificateStore
from .batch_trigger import BatchTrigger
from .log_archiver import LogArchiver
from .archive_service import ArchiveService

__all__ = [
    'CertificateStore',
    'BatchTrigger',
    'LogArchiver',
    'ArchiveService',
]
