"""Multi-snapshot version tracking."""

from oops.versions.manager import VersionManager
from oops.versions.models import CommitResult, VersionHistory, VersionRecord
from oops.versions.store import VersionStore

__all__ = [
    "CommitResult",
    "VersionHistory",
    "VersionManager",
    "VersionRecord",
    "VersionStore",
]
