"""
Domain layer for pushlog.

Contains pure domain objects with no I/O or side effects:
- Certificate: A parsed push certificate and its ref updates
- Batch: Certificates drained from the pending area by one rotation
- LogEntry: One archived certificate in the log chain

These objects are immutable and provide serialization methods for
JSONL output.
"""

from .certificate import Certificate, RefUpdate, parse_update_line
from .batch import Batch, new_batch_id
from .log_entry import LogEntry

__all__ = [
    'Certificate',
    'RefUpdate',
    'parse_update_line',
    'Batch',
    'new_batch_id',
    'LogEntry',
]
