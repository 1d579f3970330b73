"""Status models shared by the tracker and the client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from oops.workspace.models import TrackingMode


class FileStatus(str, Enum):
    """Working-file state relative to its stored snapshot."""

    CLEAN = "clean"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class FileStatusInfo:
    """One row of a status listing.

    Attributes:
        path: Canonical path of the working file.
        mode: Tracking mode of the path.
        status: Working content vs. backup (backup mode) or the
            current version (version mode).
        current_version: Current version number (version mode only).
    """

    path: str
    mode: TrackingMode
    status: FileStatus
    current_version: int | None = None

    @property
    def has_changes(self) -> bool:
        return self.status is not FileStatus.CLEAN

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "mode": self.mode.value,
            "status": self.status.value,
            "current_version": self.current_version,
        }


@dataclass
class ValidationReport:
    """Result of checking tracked files against their payloads."""

    valid: bool
    errors: list[str]
