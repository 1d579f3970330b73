"""Single-snapshot backup tracking."""

from oops.tracking.models import FileStatus, FileStatusInfo, ValidationReport
from oops.tracking.tracker import BackupTracker

__all__ = [
    "BackupTracker",
    "FileStatus",
    "FileStatusInfo",
    "ValidationReport",
]
