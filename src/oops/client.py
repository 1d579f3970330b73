"""Oops client: the engine API a front end calls.

Wires configuration, the workspace, the backup tracker and the version
manager together behind one object.

Example:
    oops = Oops(workspace_path="/tmp/project/.oops")
    await oops.init()
    await oops.track("notes.txt")
    ...
    if await oops.has_changes("notes.txt"):
        print((await oops.diff("notes.txt")).diff_text)
    await oops.keep("notes.txt")
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from oops import __version__
from oops.config.loader import ConfigLoader, set_config_value
from oops.config.models import OopsConfig
from oops.core.constants import TEXT_ENCODING
from oops.core.errors import OopsError
from oops.core.logging import get_logger
from oops.core.paths import canonical_path
from oops.diff.engine import DiffEngine, DiffResult
from oops.fs.filesystem import FileSystem
from oops.tracking.models import FileStatus, FileStatusInfo, ValidationReport
from oops.tracking.tracker import BackupTracker
from oops.versions.manager import VersionManager
from oops.versions.models import CommitResult, VersionRecord
from oops.workspace.manager import WorkspaceManager
from oops.workspace.models import (
    TrackedFile,
    TrackingMode,
    WorkspaceInfo,
    WorkspaceSize,
    WorkspaceType,
)

logger = get_logger(__name__)

PathArg = str | Path


class Oops:
    """Facade over the workspace, backup and version engines.

    Args:
        config: Configuration to use. Loaded from settings files and the
            environment when omitted.
        workspace_path: Explicit workspace directory. Overrides the
            configured location.
    """

    def __init__(
        self,
        config: OopsConfig | None = None,
        workspace_path: PathArg | None = None,
        workspace_type: WorkspaceType | None = None,
    ) -> None:
        self._config = config if config is not None else ConfigLoader().config
        self._workspace = WorkspaceManager(workspace_path, self._config, workspace_type)
        self._diff = DiffEngine.from_settings(self._config.diff)
        self._tracker = BackupTracker(self._workspace, self._diff)
        self._versions = VersionManager(self._workspace, self._diff)

    @classmethod
    async def create_temp_workspace(cls, config: OopsConfig | None = None) -> Oops:
        """Client on a fresh, initialized workspace in a temp directory."""
        path = await FileSystem.create_temp_directory()
        client = cls(config or OopsConfig(), path, WorkspaceType.TEMPORARY)
        await client.init()
        return client

    @classmethod
    async def create_local_workspace(
        cls,
        workspace_dir: PathArg,
        config: OopsConfig | None = None,
    ) -> Oops:
        """Client on the given workspace directory (not initialized)."""
        return cls(config or OopsConfig(), workspace_dir)

    @staticmethod
    def get_version() -> str:
        return __version__

    @property
    def workspace(self) -> WorkspaceManager:
        return self._workspace

    @property
    def tracker(self) -> BackupTracker:
        return self._tracker

    @property
    def versions(self) -> VersionManager:
        return self._versions

    # =========================================================================
    # Configuration
    # =========================================================================

    def get_config(self) -> OopsConfig:
        return self._config

    def set_config(self, key: str, value: Any) -> OopsConfig:
        """Set a dotted key such as ``"diff.algorithm"``.

        Diff settings apply immediately. The workspace location is fixed
        when the client is created.

        Raises:
            ConfigError: If the key is unknown or the value invalid.
        """
        self._config = set_config_value(self._config, key, value)
        self._diff.algorithm = self._config.diff.algorithm
        self._diff.context = self._config.diff.context
        return self._config

    # =========================================================================
    # Workspace
    # =========================================================================

    async def init(self) -> WorkspaceInfo:
        return await self._workspace.init()

    async def get_workspace_info(self) -> WorkspaceInfo:
        return await self._workspace.get_info()

    async def is_workspace_healthy(self) -> bool:
        return await self._workspace.is_healthy()

    async def clean_workspace(self) -> None:
        await self._workspace.clean()

    async def get_workspace_size(self) -> WorkspaceSize:
        return await self._workspace.get_size()

    async def destroy_workspace(self) -> None:
        await self._workspace.destroy()

    # =========================================================================
    # Backup mode
    # =========================================================================

    async def track(self, file_path: PathArg) -> TrackedFile:
        return await self._tracker.track(file_path)

    async def is_tracked(self, file_path: PathArg) -> bool:
        """True if the path is tracked in either mode."""
        return await self.get_mode(file_path) is not TrackingMode.UNTRACKED

    async def get_tracking_info(self, file_path: PathArg) -> TrackedFile:
        return await self._tracker.get_tracking_info(file_path)

    async def diff(self, file_path: PathArg) -> DiffResult:
        """Working changes: against the backup, or the current version."""
        if await self.get_mode(file_path) is TrackingMode.VERSION:
            return await self._versions.get_version_diff(file_path)
        return await self._tracker.diff(file_path)

    async def has_changes(self, file_path: PathArg) -> bool:
        if await self.get_mode(file_path) is TrackingMode.VERSION:
            return await self._versions.has_changes(file_path)
        return await self._tracker.has_changes(file_path)

    async def keep(self, file_path: PathArg) -> None:
        """Accept the working content and stop tracking."""
        if await self.get_mode(file_path) is TrackingMode.VERSION:
            await self._versions.remove_versioning(file_path)
        else:
            await self._tracker.keep(file_path)

    async def undo(self, file_path: PathArg) -> None:
        """Restore the backup (or version 1) and stop tracking."""
        if await self.get_mode(file_path) is TrackingMode.VERSION:
            await self._versions.undo_to_initial(file_path)
        else:
            await self._tracker.undo(file_path)

    async def abort(self, file_path: PathArg) -> None:
        """Stop tracking, leaving the working file as it is."""
        if await self.get_mode(file_path) is TrackingMode.VERSION:
            await self._versions.remove_versioning(file_path)
        else:
            await self._tracker.abort(file_path)

    async def keep_all(self) -> list[str]:
        return await self._for_all_tracked(self.keep)

    async def undo_all(self) -> list[str]:
        return await self._for_all_tracked(self.undo)

    async def abort_all(self) -> list[str]:
        return await self._for_all_tracked(self.abort)

    async def validate_tracked_files(self) -> ValidationReport:
        return await self._tracker.validate()

    # =========================================================================
    # Version mode
    # =========================================================================

    async def create_initial_version(
        self,
        file_path: PathArg,
        message: str | None = None,
    ) -> VersionRecord:
        if message is None:
            return await self._versions.create_initial_version(file_path)
        return await self._versions.create_initial_version(file_path, message)

    async def commit_version(self, file_path: PathArg, message: str) -> CommitResult:
        return await self._versions.commit_version(file_path, message)

    async def checkout_version(self, file_path: PathArg, version: int) -> VersionRecord:
        return await self._versions.checkout_version(file_path, version)

    async def get_version_history(self, file_path: PathArg) -> list[VersionRecord]:
        return await self._versions.get_version_history(file_path)

    async def get_current_version(self, file_path: PathArg) -> int:
        return await self._versions.get_current_version(file_path)

    async def get_version_diff(
        self,
        file_path: PathArg,
        from_version: int | None = None,
        to_version: int | None = None,
    ) -> DiffResult:
        return await self._versions.get_version_diff(file_path, from_version, to_version)

    async def has_version_changes(self, file_path: PathArg) -> bool:
        return await self._versions.has_changes(file_path)

    async def untrack(self, file_path: PathArg) -> None:
        """Stop versioning a file, keeping its working content."""
        await self._versions.remove_versioning(file_path)

    # =========================================================================
    # Cross-mode
    # =========================================================================

    async def get_mode(self, file_path: PathArg) -> TrackingMode:
        state = await self._workspace.read_state()
        return state.mode_of(canonical_path(file_path))

    async def promote(self, file_path: PathArg) -> VersionRecord:
        return await self._versions.promote(file_path)

    async def get_all_tracked_files(self) -> list[TrackedFile]:
        state = await self._workspace.read_state()
        return state.entries()

    async def get_status(self) -> list[FileStatusInfo]:
        """Status of every tracked file in either mode.

        Entries that cannot be read are logged and left out.
        """
        rows: list[FileStatusInfo] = []
        for entry in await self.get_all_tracked_files():
            try:
                rows.append(await self._status_of(entry))
            except OopsError as e:
                logger.warning("Skipping %s in status listing: %s", entry.file_path, e)
        return rows

    async def _status_of(self, entry: TrackedFile) -> FileStatusInfo:
        current_version = None
        if entry.mode is TrackingMode.VERSION:
            history = await self._versions.get_history(entry.file_path)
            current_version = history.current_version
            baseline = history.current.content.encode(TEXT_ENCODING)
        else:
            baseline = await self._workspace.read_backup_bytes(entry)

        if not await FileSystem.exists(entry.file_path):
            status = FileStatus.DELETED
        else:
            content = await FileSystem.read_bytes(entry.file_path)
            status = FileStatus.CLEAN if content == baseline else FileStatus.MODIFIED

        return FileStatusInfo(
            path=entry.file_path,
            mode=entry.mode,
            status=status,
            current_version=current_version,
        )

    async def _for_all_tracked(self, operation: Callable[[str], Awaitable[None]]) -> list[str]:
        paths = [entry.file_path for entry in await self.get_all_tracked_files()]
        for path in paths:
            await operation(path)
        return paths

    def __repr__(self) -> str:
        return f"Oops(workspace={self._workspace.path})"

