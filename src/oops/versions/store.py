"""Per-file version store.

Layout under ``versions/<hash>/``::

    versions.json   ordered array of VersionRecord, creation order
    current.txt     the current version number as plain text

Both files are rewritten with atomic replace. Callers stage changes as
transaction operations so the log and the pointer move together.
"""

from __future__ import annotations

import json
from pathlib import Path

from oops.core.constants import CURRENT_POINTER_NAME, INITIAL_VERSION, VERSIONS_LOG_NAME
from oops.core.errors import OopsFileNotFoundError, WorkspaceCorruptedError
from oops.core.paths import canonical_path, file_hash
from oops.fs.filesystem import FileSystem
from oops.fs.transaction import FileOperation, FileOperations
from oops.versions.models import VersionHistory, VersionRecord
from oops.workspace.manager import WorkspaceManager


class VersionStore:
    """Reads and stages writes of one file's version log and pointer."""

    def __init__(self, workspace: WorkspaceManager, file_path: str | Path) -> None:
        self.file_path = canonical_path(file_path)
        self.file_hash = file_hash(self.file_path)
        self.directory = workspace.version_store_dir(self.file_hash)
        self._workspace_path = str(workspace.path)

    @property
    def log_path(self) -> Path:
        return self.directory / VERSIONS_LOG_NAME

    @property
    def pointer_path(self) -> Path:
        return self.directory / CURRENT_POINTER_NAME

    async def exists(self) -> bool:
        return await FileSystem.exists(self.log_path)

    async def load(self) -> VersionHistory:
        """Read the log and pointer.

        Raises:
            WorkspaceCorruptedError: If either file is missing or invalid,
                versions are not numbered 1, 2, 3, ... in order, a
                record fails its checksum, or the pointer names a
                version with no record.
        """
        # Writers replace the log before the pointer, so an unlocked reader
        # that reads the pointer first always finds its record in the log.
        current = await self._load_pointer()
        records = await self._load_records()

        history = VersionHistory(self.file_path, records, current)
        if history.get(current) is None:
            raise self._corrupted(CURRENT_POINTER_NAME, f"version {current} has no record")
        return history

    def create_operations(self, record: VersionRecord) -> list[FileOperation]:
        """Steps creating a store holding a single record."""
        return [
            FileOperations.create_directory(self.directory),
            *self.write_operations([record], record.version),
        ]

    def write_operations(
        self,
        records: list[VersionRecord],
        current_version: int,
    ) -> list[FileOperation]:
        """Steps replacing the log and the pointer."""
        return [
            FileOperations.write_file(self.log_path, _dump_records(records)),
            self.pointer_operation(current_version),
        ]

    def pointer_operation(self, current_version: int) -> FileOperation:
        return FileOperations.write_file(self.pointer_path, f"{current_version}\n")

    def delete_operation(self) -> FileOperation:
        return FileOperations.delete_file(self.directory)

    async def _load_records(self) -> list[VersionRecord]:
        raw = await self._read(self.log_path)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise self._corrupted(VERSIONS_LOG_NAME, str(e)) from e

        if not isinstance(data, list) or not data:
            raise self._corrupted(VERSIONS_LOG_NAME, "expected a non-empty array")

        try:
            records = [VersionRecord.from_dict(item) for item in data]
        except (KeyError, ValueError, TypeError) as e:
            raise self._corrupted(VERSIONS_LOG_NAME, str(e)) from e

        expected = INITIAL_VERSION
        for record in records:
            if record.version != expected:
                raise self._corrupted(
                    VERSIONS_LOG_NAME,
                    f"expected version {expected}, found {record.version}",
                )
            if not record.verify():
                raise self._corrupted(
                    VERSIONS_LOG_NAME, f"checksum mismatch in version {record.version}"
                )
            expected += 1
        return records

    async def _load_pointer(self) -> int:
        raw = await self._read(self.pointer_path)
        try:
            return int(raw.strip())
        except ValueError as e:
            raise self._corrupted(CURRENT_POINTER_NAME, f"not an integer: {raw!r}") from e

    async def _read(self, path: Path) -> str:
        try:
            return await FileSystem.read_file(path)
        except OopsFileNotFoundError as e:
            raise self._corrupted(path.name, "missing") from e

    def _corrupted(self, name: str, reason: str) -> WorkspaceCorruptedError:
        return WorkspaceCorruptedError(
            self._workspace_path,
            file=str(self.directory / name),
            tracked_file=self.file_path,
            reason=reason,
        )


def _dump_records(records: list[VersionRecord]) -> str:
    return json.dumps([r.to_dict() for r in records], indent=2) + "\n"
