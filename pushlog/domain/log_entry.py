"""
Log entry domain object for pushlog.

Each log entry is a commit on the log ref wrapping exactly one certificate.
Its tree maps every ref the certificate covers to the certificate blob, so
``git log <log-ref> -- <ref-name>`` lists the certificates touching a ref.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple


@dataclass(frozen=True)
class LogEntry:
    """
    One archived certificate.

    Attributes:
        commit: Object id of the log entry commit
        parent: Object id of the previous entry (or the empty root)
        content_id: Blob id of the certificate
        refs: Ref names the certificate covers
        certificate: Certificate bytes, when they were loaded
    """

    commit: str
    parent: Optional[str]
    content_id: str
    refs: Tuple[str, ...] = ()
    certificate: Optional[bytes] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            'commit': self.commit,
            'parent': self.parent,
            'certificate_id': self.content_id,
            'refs': list(self.refs),
        }
        if self.certificate is not None:
            data['certificate'] = self.certificate.decode('utf-8', errors='replace')
        return data

