"""Workspace data models.

This module provides the records persisted at the workspace root:
- WorkspaceMetadata: config.json ({version, createdAt, type})
- TrackedFile: one entry of the tracking registry
- WorkspaceState: state.json ({trackedFiles, lastModified})
- WorkspaceInfo: read-only summary returned by get_info()

JSON keys on disk are camelCase; attribute names are snake_case.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from oops.core.constants import WORKSPACE_FORMAT_VERSION


def _parse_timestamp(value: str | None) -> datetime:
    if value:
        return datetime.fromisoformat(value)
    return datetime.now(UTC)


class WorkspaceType(str, Enum):
    """How the workspace location was chosen."""

    LOCAL = "local"
    EXPLICIT = "explicit"
    TEMPORARY = "temporary"


class TrackingMode(str, Enum):
    """Which tracking mode a path is in. A path is in exactly one."""

    UNTRACKED = "untracked"
    BACKUP = "backup"
    VERSION = "version"


@dataclass
class WorkspaceMetadata:
    """Contents of config.json."""

    type: WorkspaceType
    version: str = WORKSPACE_FORMAT_VERSION
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "createdAt": self.created_at.isoformat(),
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkspaceMetadata:
        return cls(
            type=WorkspaceType(data.get("type", WorkspaceType.LOCAL.value)),
            version=data.get("version", WORKSPACE_FORMAT_VERSION),
            created_at=_parse_timestamp(data.get("createdAt")),
        )


@dataclass
class TrackedFile:
    """Registry entry for a tracked path.

    Attributes:
        file_path: Canonical absolute path (unique key).
        mode: BACKUP or VERSION.
        backup_path: Backup payload location (backup mode only).
        tracked_at: When tracking started.
        has_changes: Derived on read, never persisted.
    """

    file_path: str
    mode: TrackingMode = TrackingMode.BACKUP
    backup_path: str | None = None
    tracked_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    has_changes: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "mode": self.mode.value,
            "backupPath": self.backup_path,
            "trackedAt": self.tracked_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackedFile:
        return cls(
            file_path=data["filePath"],
            mode=TrackingMode(data.get("mode", TrackingMode.BACKUP.value)),
            backup_path=data.get("backupPath"),
            tracked_at=_parse_timestamp(data.get("trackedAt")),
        )


@dataclass
class WorkspaceState:
    """Contents of state.json: the single registry of tracked paths.

    Instances are treated as values. Mutators return a new state so a
    caller can stage the change in a transaction before it is written.
    """

    tracked_files: list[TrackedFile] = field(default_factory=list)
    last_modified: datetime = field(default_factory=lambda: datetime.now(UTC))

    def get(self, file_path: str) -> TrackedFile | None:
        for entry in self.tracked_files:
            if entry.file_path == file_path:
                return entry
        return None

    def mode_of(self, file_path: str) -> TrackingMode:
        entry = self.get(file_path)
        return entry.mode if entry else TrackingMode.UNTRACKED

    def entries(self, mode: TrackingMode | None = None) -> list[TrackedFile]:
        if mode is None:
            return list(self.tracked_files)
        return [e for e in self.tracked_files if e.mode is mode]

    def with_entry(self, entry: TrackedFile) -> WorkspaceState:
        """Return a copy with entry added, replacing any entry for its path."""
        others = [e for e in self.tracked_files if e.file_path != entry.file_path]
        return replace(self, tracked_files=[*others, entry], last_modified=datetime.now(UTC))

    def without(self, file_path: str) -> WorkspaceState:
        remaining = [e for e in self.tracked_files if e.file_path != file_path]
        return replace(self, tracked_files=remaining, last_modified=datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "trackedFiles": [e.to_dict() for e in self.tracked_files],
            "lastModified": self.last_modified.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkspaceState:
        return cls(
            tracked_files=[TrackedFile.from_dict(e) for e in data.get("trackedFiles", [])],
            last_modified=_parse_timestamp(data.get("lastModified")),
        )


@dataclass
class WorkspaceInfo:
    """Summary of a workspace; exists=False when it has not been created."""

    path: str
    type: WorkspaceType
    exists: bool
    is_healthy: bool
    tracked_files: list[TrackedFile] = field(default_factory=list)
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "type": self.type.value,
            "exists": self.exists,
            "is_healthy": self.is_healthy,
            "tracked_files": [e.to_dict() for e in self.tracked_files],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class WorkspaceSize:
    """Size of the working files under tracking."""

    files: int = 0
    size_bytes: int = 0
