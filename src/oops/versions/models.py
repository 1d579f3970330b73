"""Version data models.

- VersionRecord: one immutable full-content snapshot
- VersionHistory: every record of a file plus the current pointer
- CommitResult: what commit_version() created
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from oops.core.constants import INITIAL_VERSION
from oops.core.paths import content_checksum


@dataclass(frozen=True)
class VersionRecord:
    """Immutable snapshot of a file's content.

    Attributes:
        version: Version number, starting at 1.
        message: Commit message.
        timestamp: When the snapshot was taken.
        checksum: SHA256 of content.
        content: Complete file content (never a delta).
    """

    version: int
    message: str
    content: str
    checksum: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def create(cls, version: int, message: str, content: str) -> VersionRecord:
        return cls(
            version=version,
            message=message,
            content=content,
            checksum=content_checksum(content),
        )

    def verify(self) -> bool:
        """Check stored content still matches its checksum."""
        return content_checksum(self.content) == self.checksum

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "checksum": self.checksum,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VersionRecord:
        version = data["version"]
        if not isinstance(version, int) or isinstance(version, bool) or version < INITIAL_VERSION:
            raise ValueError(f"invalid version number: {version!r}")
        content = data["content"]
        if not isinstance(content, str):
            raise ValueError(f"content of version {version} is not text")

        timestamp_str = data.get("timestamp", "")
        timestamp = datetime.fromisoformat(timestamp_str) if timestamp_str else datetime.now(UTC)

        return cls(
            version=version,
            message=data.get("message", ""),
            content=content,
            checksum=data.get("checksum") or content_checksum(content),
            timestamp=timestamp,
        )


@dataclass
class VersionHistory:
    """All versions of one file, in creation order."""

    file_path: str
    records: list[VersionRecord]
    current_version: int

    @property
    def latest_version(self) -> int:
        return max(r.version for r in self.records)

    @property
    def next_version(self) -> int:
        """Next number to assign: max(existing) + 1, whatever is checked out."""
        return self.latest_version + 1

    def get(self, version: int) -> VersionRecord | None:
        for record in self.records:
            if record.version == version:
                return record
        return None

    @property
    def current(self) -> VersionRecord:
        record = self.get(self.current_version)
        if record is None:
            raise LookupError(f"current version {self.current_version} has no record")
        return record

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class CommitResult:
    """Outcome of a successful commit."""

    version: int
    message: str
    previous_version: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "message": self.message,
            "previous_version": self.previous_version,
        }
