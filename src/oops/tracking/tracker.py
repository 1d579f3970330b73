"""Backup tracker: single-snapshot tracking.

Per-file lifecycle::

    Untracked --track--> Tracked(clean) --edit--> Tracked(dirty)
    Tracked --keep/abort--> Untracked   (working content stays)
    Tracked --undo-->       Untracked   (backup content restored)

The backup payload lives at ``files/<hash>/backup``; the registry entry
in state.json records the path, mode and backup location. Every
mutation runs as one Transaction under the file lock and the state lock,
so a failure never leaves a registry entry without its backup or a
backup without its entry.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path

from oops.core.errors import (
    FileAlreadyTrackedError,
    FileNotTrackedError,
    OopsFileNotFoundError,
)
from oops.core.logging import get_logger
from oops.core.paths import canonical_path, file_hash
from oops.diff.engine import DiffEngine, DiffResult
from oops.fs.filesystem import FileSystem
from oops.fs.transaction import FileOperations, Transaction
from oops.tracking.models import ValidationReport
from oops.workspace.manager import WorkspaceManager
from oops.workspace.models import TrackedFile, TrackingMode, WorkspaceState

logger = get_logger(__name__)


class BackupTracker:
    """Tracks files with one backup each.

    Example:
        tracker = BackupTracker(workspace)
        await tracker.track("notes.txt")
        ...
        if await tracker.has_changes("notes.txt"):
            await tracker.undo("notes.txt")
    """

    def __init__(
        self,
        workspace: WorkspaceManager,
        diff_engine: DiffEngine | None = None,
    ) -> None:
        self._workspace = workspace
        self._diff = diff_engine or DiffEngine()

    @property
    def workspace(self) -> WorkspaceManager:
        return self._workspace

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def is_tracked(self, file_path: str | Path) -> bool:
        state = await self._workspace.read_state()
        return state.mode_of(canonical_path(file_path)) is TrackingMode.BACKUP

    async def list_tracked(self) -> list[TrackedFile]:
        state = await self._workspace.read_state()
        return state.entries(TrackingMode.BACKUP)

    async def get_tracking_info(self, file_path: str | Path) -> TrackedFile:
        """Registry entry for a path with ``has_changes`` filled in.

        Raises:
            FileNotTrackedError: If the path is not backup-tracked.
        """
        entry = await self._get_entry(canonical_path(file_path))
        entry.has_changes = await self._compare(entry)
        return entry

    async def has_changes(self, file_path: str | Path) -> bool:
        """Whether the working file differs from its backup.

        A deleted working file counts as changed.

        Raises:
            FileNotTrackedError: If the path is not backup-tracked.
        """
        entry = await self._get_entry(canonical_path(file_path))
        return await self._compare(entry)

    async def diff(self, file_path: str | Path) -> DiffResult:
        """Diff backup (old) against the working file (new).

        Raises:
            FileNotTrackedError: If the path is not backup-tracked.
            OopsFileNotFoundError: If the working file was deleted.
            FileOperationError: If the working file is not valid UTF-8 text.
        """
        entry = await self._get_entry(canonical_path(file_path))
        backup = await self._workspace.read_backup(entry)
        current = await FileSystem.read_file(entry.file_path)
        name = Path(entry.file_path).name
        return self._diff.generate_diff(backup, current, f"a/{name}", f"b/{name}")

    async def validate(self) -> ValidationReport:
        """Check every tracked file still has its working file and backup."""
        errors: list[str] = []
        for entry in await self.list_tracked():
            if not await FileSystem.exists(entry.file_path):
                errors.append(f"Tracked file does not exist: {entry.file_path}")
            if not entry.backup_path or not await FileSystem.exists(entry.backup_path):
                errors.append(f"Backup file does not exist: {entry.backup_path}")
        return ValidationReport(valid=not errors, errors=errors)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def track(self, file_path: str | Path) -> TrackedFile:
        """Start tracking a file by copying it to its backup location.

        Raises:
            OopsFileNotFoundError: If the file does not exist.
            FileOperationError: If the file is not valid UTF-8 text.
            FileAlreadyTrackedError: If the path is tracked in any mode.
        """
        await self._workspace.require()
        path = canonical_path(file_path)
        if not await FileSystem.is_file(path):
            raise OopsFileNotFoundError(path)
        # Rejects content that is not UTF-8 text
        await FileSystem.read_file(path)

        key = file_hash(path)
        locks = self._workspace.locks
        async with locks.hold(key), locks.state():
            state = await self._workspace.read_state()
            existing = state.get(path)
            if existing is not None:
                raise FileAlreadyTrackedError(path, mode=existing.mode.value)

            backup = self._workspace.backup_path(key)
            entry = TrackedFile(file_path=path, mode=TrackingMode.BACKUP, backup_path=str(backup))

            transaction = Transaction("track")
            transaction.add_operations(
                FileOperations.create_directory(self._workspace.tracking_dir(key)),
                FileOperations.copy_file(path, backup),
                self._workspace.state_write_operation(state.with_entry(entry)),
            )
            await transaction.execute()

        logger.debug("Tracking %s (backup at %s)", path, backup)
        return entry

    async def keep(self, file_path: str | Path) -> None:
        """Accept the working content and stop tracking.

        Raises:
            FileNotTrackedError: If the path is not backup-tracked.
        """
        await self._release(canonical_path(file_path), "keep")

    async def abort(self, file_path: str | Path) -> None:
        """Stop tracking without touching the working file.

        Raises:
            FileNotTrackedError: If the path is not backup-tracked.
        """
        await self._release(canonical_path(file_path), "abort")

    async def undo(self, file_path: str | Path) -> None:
        """Restore the backup content and stop tracking.

        Raises:
            FileNotTrackedError: If the path is not backup-tracked.
            WorkspaceCorruptedError: If the backup payload is missing.
        """
        path = canonical_path(file_path)
        key = file_hash(path)
        locks = self._workspace.locks
        async with locks.hold(key), locks.state():
            state = await self._workspace.read_state()
            entry = self._require_entry(state, path)
            backup = await self._workspace.backup_file(entry)

            transaction = Transaction("undo")
            transaction.add_operations(
                FileOperations.copy_file(backup, path),
                FileOperations.delete_file(self._workspace.tracking_dir(key)),
                self._workspace.state_write_operation(state.without(path)),
            )
            await transaction.execute()

        logger.debug("Restored %s from backup and stopped tracking", path)

    async def keep_all(self) -> list[str]:
        return await self._for_all(self.keep)

    async def undo_all(self) -> list[str]:
        return await self._for_all(self.undo)

    async def abort_all(self) -> list[str]:
        return await self._for_all(self.abort)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _release(self, path: str, action: str) -> None:
        key = file_hash(path)
        locks = self._workspace.locks
        async with locks.hold(key), locks.state():
            state = await self._workspace.read_state()
            self._require_entry(state, path)

            transaction = Transaction(action)
            tracking_dir = self._workspace.tracking_dir(key)
            if await FileSystem.exists(tracking_dir):
                transaction.add_operation(FileOperations.delete_file(tracking_dir))
            transaction.add_operation(self._workspace.state_write_operation(state.without(path)))
            await transaction.execute()

        logger.debug("%s: stopped tracking %s", action, path)

    async def _for_all(self, operation: Callable[[str], Awaitable[None]]) -> list[str]:
        paths = [entry.file_path for entry in await self.list_tracked()]
        for path in paths:
            await operation(path)
        return paths

    async def _get_entry(self, path: str) -> TrackedFile:
        state = await self._workspace.read_state()
        return self._require_entry(state, path)

    @staticmethod
    def _require_entry(state: WorkspaceState, path: str) -> TrackedFile:
        entry = state.get(path)
        if entry is None or entry.mode is not TrackingMode.BACKUP:
            mode = entry.mode.value if entry else TrackingMode.UNTRACKED.value
            raise FileNotTrackedError(path, mode=mode)
        return entry

    async def _compare(self, entry: TrackedFile) -> bool:
        # Bytes, so an edit that is no longer valid UTF-8 still counts
        backup = await self._workspace.read_backup_bytes(entry)
        if not await FileSystem.exists(entry.file_path):
            return True
        return await FileSystem.read_bytes(entry.file_path) != backup
