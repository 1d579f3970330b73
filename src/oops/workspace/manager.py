"""Workspace lifecycle and shared metadata.

The workspace is a directory (``./.oops`` by default) holding:

    config.json        workspace metadata
    state.json         registry of tracked paths and their mode
    files/<hash>/      backup payloads (backup mode)
    versions/<hash>/   version stores (version mode)

WorkspaceManager owns that directory: creation, health checks, cleanup,
and serialized access to state.json through its lock registry.
"""

from __future__ import annotations

import json
import os
import tempfile
import uuid
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

from oops.config.models import OopsConfig
from oops.core.constants import (
    BACKUP_FILE_NAME,
    CONFIG_FILE_NAME,
    FILES_DIR_NAME,
    REQUIRED_METADATA_FILES,
    STATE_FILE_NAME,
    TEMP_WORKSPACE_PREFIX,
    VERSIONS_DIR_NAME,
    WORKSPACE_DIR_NAME,
    WORKSPACE_ENV,
)
from oops.core.errors import (
    OopsError,
    OopsFileNotFoundError,
    WorkspaceAlreadyInitializedError,
    WorkspaceCorruptedError,
    WorkspaceNotFoundError,
)
from oops.core.logging import get_logger
from oops.fs.filesystem import FileSystem
from oops.fs.locks import LockRegistry
from oops.fs.transaction import FileOperation, FileOperations, Transaction
from oops.workspace.models import (
    TrackedFile,
    WorkspaceInfo,
    WorkspaceMetadata,
    WorkspaceSize,
    WorkspaceState,
    WorkspaceType,
)

logger = get_logger(__name__)

T = TypeVar("T")


def resolve_workspace_location(
    workspace_path: str | Path | None,
    config: OopsConfig,
) -> tuple[Path, WorkspaceType]:
    """Decide where the workspace lives.

    Precedence: explicit argument, then ``config.workspace.path``, then
    the OOPS_WORKSPACE environment variable, then a temporary location
    when ``use_temp`` is set, then ``<cwd>/.oops``.

    Nothing is created here. A temporary location is a fresh, unused
    name in the system temp directory; ``init()`` creates it.
    """
    if workspace_path is not None:
        return Path(os.path.abspath(workspace_path)), WorkspaceType.EXPLICIT

    configured = config.workspace.path or os.environ.get(WORKSPACE_ENV)
    if configured:
        return Path(os.path.abspath(configured)), WorkspaceType.EXPLICIT

    if config.workspace.use_temp:
        name = f"{TEMP_WORKSPACE_PREFIX}{uuid.uuid4().hex}"
        return Path(tempfile.gettempdir()) / name, WorkspaceType.TEMPORARY

    return Path.cwd() / WORKSPACE_DIR_NAME, WorkspaceType.LOCAL


class WorkspaceManager:
    """Owns the on-disk workspace root and its metadata.

    Attributes:
        locks: Lock registry shared by every manager working on this
            workspace. Hold ``locks.state()`` around any read-modify-write
            of state.json.
    """

    def __init__(
        self,
        workspace_path: str | Path | None = None,
        config: OopsConfig | None = None,
        workspace_type: WorkspaceType | None = None,
    ) -> None:
        self._config = config or OopsConfig()
        path, resolved_type = resolve_workspace_location(workspace_path, self._config)
        self._path = path
        self._type = workspace_type or resolved_type
        self.locks = LockRegistry()

    @classmethod
    async def create_temp(cls, config: OopsConfig | None = None) -> WorkspaceManager:
        """Create and initialize a workspace in a fresh temporary directory."""
        path = await FileSystem.create_temp_directory(TEMP_WORKSPACE_PREFIX)
        manager = cls(path, config, WorkspaceType.TEMPORARY)
        await manager.init()
        return manager

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def type(self) -> WorkspaceType:
        return self._type

    @property
    def config_path(self) -> Path:
        return self._path / CONFIG_FILE_NAME

    @property
    def state_path(self) -> Path:
        return self._path / STATE_FILE_NAME

    @property
    def files_dir(self) -> Path:
        return self._path / FILES_DIR_NAME

    @property
    def versions_dir(self) -> Path:
        return self._path / VERSIONS_DIR_NAME

    def tracking_dir(self, file_hash: str) -> Path:
        """Backup payload directory for one file."""
        return self.files_dir / file_hash

    def backup_path(self, file_hash: str) -> Path:
        return self.tracking_dir(file_hash) / BACKUP_FILE_NAME

    def version_store_dir(self, file_hash: str) -> Path:
        return self.versions_dir / file_hash

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    async def exists(self) -> bool:
        return await FileSystem.is_dir(self._path)

    async def is_healthy(self) -> bool:
        """True iff the required metadata files are present and parseable."""
        if not await self.exists():
            return False
        for name in REQUIRED_METADATA_FILES:
            try:
                await self._read_json(self._path / name)
            except OopsError:
                return False
        return True

    async def require(self) -> None:
        """Ensure the workspace is usable.

        Raises:
            WorkspaceNotFoundError: If the root directory is missing.
            WorkspaceCorruptedError: If required metadata is missing or invalid.
        """
        if not await self.exists():
            raise WorkspaceNotFoundError(str(self._path))
        for name in REQUIRED_METADATA_FILES:
            await self._read_json(self._path / name)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def init(self) -> WorkspaceInfo:
        """Create the workspace root and its metadata.

        Raises:
            WorkspaceAlreadyInitializedError: If config.json already exists.
            OopsPermissionError: If the directories cannot be created.
        """
        if await FileSystem.exists(self.config_path):
            raise WorkspaceAlreadyInitializedError(str(self._path))

        metadata = WorkspaceMetadata(type=self._type)
        transaction = Transaction("init_workspace")
        transaction.add_operations(
            FileOperations.create_directory(self._path),
            FileOperations.create_directory(self.files_dir),
            FileOperations.create_directory(self.versions_dir),
            FileOperations.create_file(self.config_path, _dump_json(metadata.to_dict())),
            FileOperations.create_file(self.state_path, WorkspaceState().to_json()),
        )
        await transaction.execute()

        logger.debug("Initialized %s workspace at %s", self._type.value, self._path)
        return await self.get_info()

    async def clean(self) -> None:
        """Drop every payload and reset the registry; keep the root and config."""
        await self.require()

        async with self.locks.state():
            transaction = Transaction("clean_workspace")
            for directory in (self.files_dir, self.versions_dir):
                if await FileSystem.exists(directory):
                    transaction.add_operation(FileOperations.delete_file(directory))
                transaction.add_operation(FileOperations.create_directory(directory))
            transaction.add_operation(self.state_write_operation(WorkspaceState()))
            await transaction.execute()

        logger.debug("Cleaned workspace at %s", self._path)

    async def destroy(self) -> None:
        """Remove the whole workspace directory."""
        await FileSystem.remove(self._path)
        logger.debug("Removed workspace at %s", self._path)

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    async def read_metadata(self) -> WorkspaceMetadata:
        data = await self._read_json(self.config_path)
        try:
            return WorkspaceMetadata.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            raise WorkspaceCorruptedError(
                str(self._path), file=CONFIG_FILE_NAME, reason=str(e)
            ) from e

    async def read_state(self) -> WorkspaceState:
        """Load the tracking registry.

        Raises:
            WorkspaceNotFoundError: If the workspace does not exist.
            WorkspaceCorruptedError: If state.json is missing or invalid.
        """
        if not await self.exists():
            raise WorkspaceNotFoundError(str(self._path))
        data = await self._read_json(self.state_path)
        try:
            return WorkspaceState.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            raise WorkspaceCorruptedError(
                str(self._path), file=STATE_FILE_NAME, reason=str(e)
            ) from e

    async def write_state(self, state: WorkspaceState) -> None:
        """Atomically replace state.json. Caller holds ``locks.state()``."""
        await FileSystem.write_file(self.state_path, state.to_json())

    def state_write_operation(self, state: WorkspaceState) -> FileOperation:
        """Transaction step that writes state.json, restoring it on rollback."""
        return FileOperations.write_file(self.state_path, state.to_json())

    async def get_info(self) -> WorkspaceInfo:
        """Describe the workspace. Never raises for a missing workspace."""
        if not await self.exists():
            return WorkspaceInfo(
                path=str(self._path), type=self._type, exists=False, is_healthy=False
            )

        if not await self.is_healthy():
            return WorkspaceInfo(
                path=str(self._path), type=self._type, exists=True, is_healthy=False
            )

        metadata = await self.read_metadata()
        state = await self.read_state()
        return WorkspaceInfo(
            path=str(self._path),
            type=metadata.type,
            exists=True,
            is_healthy=True,
            tracked_files=state.tracked_files,
            created_at=metadata.created_at,
        )

    async def get_size(self) -> WorkspaceSize:
        """Count tracked files and the bytes of those still on disk."""
        state = await self.read_state()
        size = WorkspaceSize(files=len(state.tracked_files))
        for entry in state.tracked_files:
            info = await FileSystem.get_file_info(entry.file_path)
            if info.exists:
                size.size_bytes += info.size
        return size

    async def read_backup(self, entry: TrackedFile) -> str:
        """Content of a backup-mode entry's payload as text.

        Raises:
            WorkspaceCorruptedError: If the payload is missing.
        """
        return await self._read_payload(entry, FileSystem.read_file)

    async def read_backup_bytes(self, entry: TrackedFile) -> bytes:
        """Raw bytes of a backup-mode entry's payload."""
        return await self._read_payload(entry, FileSystem.read_bytes)

    async def backup_file(self, entry: TrackedFile) -> Path:
        """Payload path of a backup-mode entry, checked to exist.

        Raises:
            WorkspaceCorruptedError: If the payload is missing.
        """
        if not entry.backup_path:
            raise self._no_backup(entry)
        if not await FileSystem.is_file(entry.backup_path):
            raise self._backup_missing(entry)
        return Path(entry.backup_path)

    async def _read_payload(
        self,
        entry: TrackedFile,
        read: Callable[[str], Awaitable[T]],
    ) -> T:
        if not entry.backup_path:
            raise self._no_backup(entry)
        try:
            return await read(entry.backup_path)
        except OopsFileNotFoundError as e:
            raise self._backup_missing(entry) from e

    def _no_backup(self, entry: TrackedFile) -> WorkspaceCorruptedError:
        return WorkspaceCorruptedError(
            str(self._path), file=entry.file_path, reason="no backup recorded"
        )

    def _backup_missing(self, entry: TrackedFile) -> WorkspaceCorruptedError:
        return WorkspaceCorruptedError(
            str(self._path), file=entry.backup_path, reason="backup missing"
        )

    async def _read_json(self, path: Path) -> dict[str, Any]:
        try:
            raw = await FileSystem.read_file(path)
        except OopsFileNotFoundError as e:
            raise WorkspaceCorruptedError(
                str(self._path), file=path.name, reason="missing"
            ) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise WorkspaceCorruptedError(str(self._path), file=path.name, reason=str(e)) from e

        if not isinstance(data, dict):
            raise WorkspaceCorruptedError(
                str(self._path), file=path.name, reason="root must be an object"
            )
        return data

    def __repr__(self) -> str:
        return f"WorkspaceManager({self._path}, type={self._type.value})"


def _dump_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"
