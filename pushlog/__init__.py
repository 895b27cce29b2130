"""
pushlog - Batching and archival of signed git push certificates.

Every `git push --signed` produces a push certificate. pushlog collects
them from the post-receive hook, groups them into batches, and folds each
batch into an append-only log ref (refs/push-certs) stored in the
repository itself. The log's tree maps each ref name to the latest
certificate that touched it, so its history per ref is plain git history.

Quick Start:
    import pushlog

    service = pushlog.ArchiveService("/srv/git/project.git")

    # From a post-receive hook
    service.ingest_from_env()

    # From cron: archive anything below the batch threshold
    service.sweep()

    # Who pushed to main?
    for entry in service.history("refs/heads/main"):
        print(entry.commit, entry.certificate.decode())

Domain Objects:
    Certificate - A parsed push certificate and its ref updates
    Batch - Certificates drained from the pending area by one rotation
    LogEntry - One archived certificate in the log chain

Services:
    CertificateStore - Store a certificate and mark it pending
    BatchTrigger - Rotate the pending set into a batch
    LogArchiver - Thread a batch onto the log ref
    ArchiveService - All of the above for one repository
"""

__version__ = "0.1.0"

# Domain objects
from .domain import Certificate, RefUpdate, Batch, LogEntry

# Services
from .services import (
    ArchiveService,
    CertificateStore,
    BatchTrigger,
    LogArchiver,
)

# Errors
from .exit_codes import (
    CommandError,
    CertificateError,
    IngestError,
    ArchiveError,
    GitError,
    ConfigError,
    NotARepositoryError,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    "__version__",
    "Certificate",
    "RefUpdate",
    "Batch",
    "LogEntry",
    "ArchiveService",
    "CertificateStore",
    "BatchTrigger",
    "LogArchiver",
    "CommandError",
    "CertificateError",
    "IngestError",
    "ArchiveError",
    "GitError",
    "ConfigError",
    "NotARepositoryError",
    "load_config",
    "save_config",
]
