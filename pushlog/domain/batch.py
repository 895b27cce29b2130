"""
Batch domain object for pushlog.

A batch is the set of certificates drained from the pending area by one
rotation. It lives in its own staging directory until it is archived.
"""

from dataclasses import dataclass
from typing import Tuple
import os
import time


def new_batch_id() -> str:
    """
    Generate a staging area name.

    Zero-padded nanosecond time first, process id second, so lexical order
    follows rotation order and two processes never collide.
    """
    return f"{time.time_ns():020d}-{os.getpid()}"


@dataclass(frozen=True)
class Batch:
    """A rotated, not yet archived group of certificate content-ids."""
    id: str
    content_ids: Tuple[str, ...] = ()
