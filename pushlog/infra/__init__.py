"""
Infrastructure layer for pushlog.

Contains abstractions for external systems:
- GitClient: Git plumbing command execution
- Manifest: Ordered id list with atomic replacement
- StateArea: Pending and staging directory layout
- LockCoordinator: Collection and archival file locks

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient
from .manifest import Manifest
from .state_area import StateArea
from .locks import FileLock, LockCoordinator, COLLECTION, ARCHIVAL

__all__ = [
    'GitClient',
    'Manifest',
    'StateArea',
    'FileLock',
    'LockCoordinator',
    'COLLECTION',
    'ARCHIVAL',
]
