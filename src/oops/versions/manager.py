"""Version manager: multi-snapshot tracking.

Per-file lifecycle::

    Untracked --create_initial_version--> Tracked(v=1)
    Tracked(v=n) --commit_version--> Tracked(v=max+1)   (only if content changed)
    Tracked(v=n) --checkout_version(k)--> Tracked(v=k)  (working file rewritten)

Version numbers are monotonic integers. New versions are always numbered
``max(existing) + 1``; checking out an older version never truncates or
branches history.

Store mutations run under the file's lock. Changes to the tracking
registry (start/stop versioning, promotion) also take the state lock.
"""

from __future__ import annotations

from pathlib import Path

from oops.core.constants import (
    INITIAL_VERSION,
    INITIAL_VERSION_MESSAGE,
    PROMOTED_VERSION_MESSAGE,
    TEXT_ENCODING,
)
from oops.core.errors import (
    FileAlreadyTrackedError,
    FileNotTrackedError,
    NoChangesError,
    OopsFileNotFoundError,
    ValidationError,
    VersionNotFoundError,
)
from oops.core.logging import get_logger
from oops.core.paths import canonical_path
from oops.diff.engine import DiffEngine, DiffResult
from oops.fs.filesystem import FileSystem
from oops.fs.transaction import FileOperations, Transaction
from oops.versions.models import CommitResult, VersionHistory, VersionRecord
from oops.versions.store import VersionStore
from oops.workspace.manager import WorkspaceManager
from oops.workspace.models import TrackedFile, TrackingMode

logger = get_logger(__name__)


class VersionManager:
    """Numbered, full-content history per file.

    Example:
        versions = VersionManager(workspace)
        await versions.create_initial_version("notes.txt")
        # ... edit notes.txt ...
        result = await versions.commit_version("notes.txt", "fix typo")
        await versions.checkout_version("notes.txt", 1)
    """

    def __init__(
        self,
        workspace: WorkspaceManager,
        diff_engine: DiffEngine | None = None,
    ) -> None:
        self._workspace = workspace
        self._diff = diff_engine or DiffEngine()

    def store_for(self, file_path: str | Path) -> VersionStore:
        return VersionStore(self._workspace, file_path)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def is_versioned(self, file_path: str | Path) -> bool:
        state = await self._workspace.read_state()
        return state.mode_of(canonical_path(file_path)) is TrackingMode.VERSION

    async def get_history(self, file_path: str | Path) -> VersionHistory:
        """Full history plus the current pointer.

        Raises:
            FileNotTrackedError: If the path is not version-tracked.
            WorkspaceCorruptedError: If the store cannot be read.
        """
        _, history = await self._load(canonical_path(file_path))
        return history

    async def get_version_history(self, file_path: str | Path) -> list[VersionRecord]:
        """All records in creation order.

        Raises:
            FileNotTrackedError: If the path is not version-tracked.
        """
        history = await self.get_history(file_path)
        return list(history.records)

    async def get_version(self, file_path: str | Path, version: int) -> VersionRecord:
        history = await self.get_history(file_path)
        return self._require_version(history, version)

    async def get_current_version(self, file_path: str | Path) -> int:
        history = await self.get_history(file_path)
        return history.current_version

    async def has_changes(self, file_path: str | Path) -> bool:
        """Working content vs. the current version. Deleted counts as changed."""
        path = canonical_path(file_path)
        _, history = await self._load(path)
        if not await FileSystem.exists(path):
            return True
        current = await FileSystem.read_bytes(path)
        return current != history.current.content.encode(TEXT_ENCODING)

    async def get_version_diff(
        self,
        file_path: str | Path,
        from_version: int | None = None,
        to_version: int | None = None,
    ) -> DiffResult:
        """Diff between versions or against the working file.

        - no versions: current version vs. working file
        - ``from_version`` only: that version vs. working file
        - both: two stored versions

        Raises:
            FileNotTrackedError: If the path is not version-tracked.
            VersionNotFoundError: If a requested version does not exist.
            ValidationError: If only ``to_version`` is given.
        """
        path = canonical_path(file_path)
        name = Path(path).name
        _, history = await self._load(path)

        if from_version is None and to_version is not None:
            raise ValidationError("to_version requires from_version", to_version=to_version)

        if from_version is None:
            old = history.current
        else:
            old = self._require_version(history, from_version)

        if to_version is None:
            new_content = await FileSystem.read_file(path)
            to_label = f"b/{name}"
        else:
            new_content = self._require_version(history, to_version).content
            to_label = f"b/{name}@v{to_version}"

        return self._diff.generate_diff(
            old.content, new_content, f"a/{name}@v{old.version}", to_label
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_initial_version(
        self,
        file_path: str | Path,
        message: str = INITIAL_VERSION_MESSAGE,
    ) -> VersionRecord:
        """Snapshot the current content as version 1.

        Raises:
            OopsFileNotFoundError: If the file does not exist.
            FileAlreadyTrackedError: If the path is tracked in any mode.
        """
        await self._workspace.require()
        path = canonical_path(file_path)
        if not await FileSystem.is_file(path):
            raise OopsFileNotFoundError(path)

        store = self.store_for(path)
        locks = self._workspace.locks
        async with locks.hold(store.file_hash), locks.state():
            state = await self._workspace.read_state()
            existing = state.get(path)
            if existing is not None:
                raise FileAlreadyTrackedError(path, mode=existing.mode.value)

            content = await FileSystem.read_file(path)
            record = VersionRecord.create(INITIAL_VERSION, message, content)
            entry = TrackedFile(file_path=path, mode=TrackingMode.VERSION)

            transaction = Transaction("create_initial_version")
            transaction.add_operations(
                *store.create_operations(record),
                self._workspace.state_write_operation(state.with_entry(entry)),
            )
            await transaction.execute()

        logger.debug("Created version %d of %s", INITIAL_VERSION, path)
        return record

    async def commit_version(self, file_path: str | Path, message: str) -> CommitResult:
        """Snapshot the working content as a new version.

        Raises:
            FileNotTrackedError: If the path is not version-tracked.
            NoChangesError: If the content equals the current version.
            OopsFileNotFoundError: If the working file was deleted.
        """
        path = canonical_path(file_path)
        store = self.store_for(path)
        async with self._workspace.locks.hold(store.file_hash):
            _, history = await self._load(path)
            content = await FileSystem.read_file(path)
            current = history.current
            if content == current.content:
                raise NoChangesError(path, current.version)

            record = VersionRecord.create(history.next_version, message, content)
            transaction = Transaction("commit_version")
            transaction.add_operations(
                *store.write_operations([*history.records, record], record.version)
            )
            await transaction.execute()

        logger.debug("Committed version %d of %s", record.version, path)
        return CommitResult(
            version=record.version,
            message=message,
            previous_version=history.current_version,
        )

    async def checkout_version(self, file_path: str | Path, version: int) -> VersionRecord:
        """Rewrite the working file with a stored version and point at it.

        Raises:
            FileNotTrackedError: If the path is not version-tracked.
            VersionNotFoundError: If the version does not exist.
        """
        path = canonical_path(file_path)
        store = self.store_for(path)
        async with self._workspace.locks.hold(store.file_hash):
            _, history = await self._load(path)
            record = self._require_version(history, version)

            transaction = Transaction("checkout_version")
            transaction.add_operations(
                FileOperations.write_file(path, record.content),
                store.pointer_operation(version),
            )
            await transaction.execute()

        logger.debug("Checked out version %d of %s", version, path)
        return record

    async def remove_versioning(self, file_path: str | Path) -> None:
        """Drop the version store; the working file is left as is.

        Raises:
            FileNotTrackedError: If the path is not version-tracked.
        """
        path = canonical_path(file_path)
        store = self.store_for(path)
        locks = self._workspace.locks
        async with locks.hold(store.file_hash), locks.state():
            state = await self._workspace.read_state()
            self._require_mode(state.mode_of(path), path)

            transaction = Transaction("remove_versioning")
            if await FileSystem.exists(store.directory):
                transaction.add_operation(store.delete_operation())
            transaction.add_operation(self._workspace.state_write_operation(state.without(path)))
            await transaction.execute()

        logger.debug("Stopped versioning %s", path)

    async def undo_to_initial(self, file_path: str | Path) -> VersionRecord:
        """Restore the first version's content and stop versioning.

        Raises:
            FileNotTrackedError: If the path is not version-tracked.
        """
        path = canonical_path(file_path)
        store = self.store_for(path)
        locks = self._workspace.locks
        async with locks.hold(store.file_hash), locks.state():
            state = await self._workspace.read_state()
            self._require_mode(state.mode_of(path), path)
            history = await store.load()
            initial = history.records[0]

            transaction = Transaction("undo_to_initial")
            transaction.add_operations(
                FileOperations.write_file(path, initial.content),
                store.delete_operation(),
                self._workspace.state_write_operation(state.without(path)),
            )
            await transaction.execute()

        logger.debug("Restored %s to version %d and stopped versioning", path, initial.version)
        return initial

    async def promote(self, file_path: str | Path) -> VersionRecord:
        """Turn a backup-tracked file into a version-tracked one.

        The backup becomes version 1 and the backup payload is removed.
        The working file is not touched.

        Raises:
            FileNotTrackedError: If the path is not tracked.
            FileAlreadyTrackedError: If the path is already version-tracked.
        """
        path = canonical_path(file_path)
        store = self.store_for(path)
        locks = self._workspace.locks
        async with locks.hold(store.file_hash), locks.state():
            state = await self._workspace.read_state()
            entry = state.get(path)
            if entry is None:
                raise FileNotTrackedError(path, mode=TrackingMode.UNTRACKED.value)
            if entry.mode is TrackingMode.VERSION:
                raise FileAlreadyTrackedError(path, mode=entry.mode.value)

            backup = await self._workspace.read_backup(entry)
            record = VersionRecord.create(INITIAL_VERSION, PROMOTED_VERSION_MESSAGE, backup)
            promoted = TrackedFile(
                file_path=path, mode=TrackingMode.VERSION, tracked_at=entry.tracked_at
            )

            transaction = Transaction("promote")
            transaction.add_operations(
                *store.create_operations(record),
                FileOperations.delete_file(self._workspace.tracking_dir(store.file_hash)),
                self._workspace.state_write_operation(state.with_entry(promoted)),
            )
            await transaction.execute()

        logger.debug("Promoted %s from backup to version tracking", path)
        return record

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _load(self, path: str) -> tuple[VersionStore, VersionHistory]:
        state = await self._workspace.read_state()
        self._require_mode(state.mode_of(path), path)
        store = self.store_for(path)
        return store, await store.load()

    @staticmethod
    def _require_mode(mode: TrackingMode, path: str) -> None:
        if mode is not TrackingMode.VERSION:
            raise FileNotTrackedError(path, mode=mode.value)

    @staticmethod
    def _require_version(history: VersionHistory, version: int) -> VersionRecord:
        record = history.get(version)
        if record is None:
            raise VersionNotFoundError(
                history.file_path, version, available=[r.version for r in history.records]
            )
        return record
