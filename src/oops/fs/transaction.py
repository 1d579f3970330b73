"""All-or-nothing execution of filesystem operations.

A Transaction runs a list of FileOperations in order. Each operation
returns a rollback token when it succeeds. If a later operation fails,
the completed ones are undone in reverse order using their tokens and
the original error is re-raised. Undo failures are logged and never
mask the original error.

Destructive operations (delete, write over an existing file, and copy
onto an existing file) keep the old bytes in an aside copy instead of
destroying them. The aside copies are
discarded once the transaction commits.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from oops.core.errors import FileOperationError, OopsFileNotFoundError, TransactionError
from oops.core.logging import get_logger
from oops.fs.filesystem import FileSystem, PathLike

logger = get_logger(__name__)

# Token returned by an operation; its meaning depends on the operation type
RollbackToken = str | None


class OperationType(str, Enum):
    """Kinds of filesystem operations a transaction can run."""

    CREATE = "create"
    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"
    WRITE = "write"


class TransactionState(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class FileOperation:
    """A single reversible filesystem step.

    Attributes:
        type: Operation kind; selects the undo strategy.
        target: Path the operation changes.
        action: Coroutine factory performing the step and returning
            the rollback token.
        source: Source path for copy/move.
        is_directory: CREATE of a directory rather than a file.
    """

    type: OperationType
    target: str
    action: Callable[[], Awaitable[RollbackToken]] = field(repr=False)
    source: str | None = None
    is_directory: bool = False

    async def execute(self) -> RollbackToken:
        return await self.action()

    def describe(self) -> str:
        if self.source:
            return f"{self.type.value} {self.source} -> {self.target}"
        return f"{self.type.value} {self.target}"


def _aside_path(path: str) -> str:
    """Sibling path used to hold replaced content until commit."""
    return f"{path}.backup.{time.time_ns()}"


class FileOperations:
    """Factories for the standard reversible operations.

    Rollback tokens:
        create: the target when it was created by this step, else None
        copy:   aside path of a replaced destination, else None
        move:   the source path
        delete: aside path holding the deleted content
        write:  aside copy of the previous file, or None if it did not exist
    """

    @staticmethod
    def create_file(path: PathLike, content: str = "") -> FileOperation:
        """Create a new file. Fails if the path already exists."""
        target = str(path)

        async def action() -> RollbackToken:
            if await FileSystem.exists(target):
                raise FileOperationError("create", target, "path already exists")
            await FileSystem.write_file(target, content)
            return target

        return FileOperation(OperationType.CREATE, target, action)

    @staticmethod
    def create_directory(path: PathLike) -> FileOperation:
        """Create a directory (and parents). Existing directories are kept."""
        target = str(path)

        async def action() -> RollbackToken:
            existed = await FileSystem.is_dir(target)
            await FileSystem.mkdir(target)
            return None if existed else target

        return FileOperation(OperationType.CREATE, target, action, is_directory=True)

    @staticmethod
    def copy_file(source: PathLike, destination: PathLike) -> FileOperation:
        src = str(source)
        target = str(destination)

        async def action() -> RollbackToken:
            if not await FileSystem.exists(src):
                raise OopsFileNotFoundError(src)
            aside = None
            if await FileSystem.exists(target):
                aside = _aside_path(target)
                await FileSystem.move_file(target, aside)
            try:
                await FileSystem.copy_file(src, target)
            except Exception:
                if aside is not None:
                    await FileSystem.move_file(aside, target)
                raise
            return aside

        return FileOperation(OperationType.COPY, target, action, source=src)

    @staticmethod
    def move_file(source: PathLike, destination: PathLike) -> FileOperation:
        src = str(source)
        target = str(destination)

        async def action() -> RollbackToken:
            await FileSystem.move_file(src, target)
            return src

        return FileOperation(OperationType.MOVE, target, action, source=src)

    @staticmethod
    def delete_file(path: PathLike) -> FileOperation:
        """Delete a file or directory by moving it aside until commit."""
        target = str(path)

        async def action() -> RollbackToken:
            aside = _aside_path(target)
            await FileSystem.move_file(target, aside)
            return aside

        return FileOperation(OperationType.DELETE, target, action)

    @staticmethod
    def write_file(path: PathLike, content: str) -> FileOperation:
        """Atomically replace a file's content, remembering the old one."""
        target = str(path)

        async def action() -> RollbackToken:
            aside = None
            if await FileSystem.exists(target):
                # Copied, not moved: the atomic write keeps the target's mode
                aside = _aside_path(target)
                await FileSystem.copy_file(target, aside)
            try:
                await FileSystem.write_file(target, content)
            except Exception:
                if aside is not None:
                    await FileSystem.remove(aside)
                raise
            return aside

        return FileOperation(OperationType.WRITE, target, action)


# Operation types whose rollback token is an aside copy
_ASIDE_TYPES = (OperationType.DELETE, OperationType.COPY, OperationType.WRITE)


class Transaction:
    """Ordered, all-or-nothing group of file operations.

    A transaction is single use. Once committed or rolled back it
    rejects further operations with TransactionError.

    Example:
        transaction = Transaction("track")
        transaction.add_operation(FileOperations.create_directory(tracking_dir))
        transaction.add_operation(FileOperations.copy_file(path, backup))
        await transaction.execute()
    """

    def __init__(self, name: str = "transaction") -> None:
        self.name = name
        self._operations: list[FileOperation] = []
        self._completed: list[tuple[FileOperation, RollbackToken]] = []
        self._state = TransactionState.PENDING

    @property
    def operations(self) -> list[FileOperation]:
        return list(self._operations)

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_committed(self) -> bool:
        return self._state is TransactionState.COMMITTED

    @property
    def is_rolled_back(self) -> bool:
        return self._state is TransactionState.ROLLED_BACK

    def _ensure_pending(self) -> None:
        if self._state is not TransactionState.PENDING:
            raise TransactionError(
                f"Transaction '{self.name}' is already {self._state.value}",
                details={"transaction": self.name, "state": self._state.value},
            )

    def add_operation(self, operation: FileOperation) -> None:
        """Append an operation.

        Raises:
            TransactionError: If the transaction already completed.
        """
        self._ensure_pending()
        self._operations.append(operation)

    def add_operations(self, *operations: FileOperation) -> None:
        for operation in operations:
            self.add_operation(operation)

    async def execute(self) -> None:
        """Run all operations in order.

        On failure, completed operations are rolled back and the
        original error propagates.

        Raises:
            TransactionError: If the transaction already completed.
        """
        self._ensure_pending()
        logger.debug(
            "Executing transaction '%s' (%d operations)", self.name, len(self._operations)
        )

        for operation in self._operations:
            try:
                token = await operation.execute()
            except Exception as e:
                logger.warning(
                    "Transaction '%s' failed at %s: %s", self.name, operation.describe(), e
                )
                await self.rollback()
                raise
            self._completed.append((operation, token))

        self._state = TransactionState.COMMITTED
        await self._discard_aside_copies()
        logger.debug("Transaction '%s' committed", self.name)

    async def rollback(self) -> None:
        """Undo completed operations in reverse order.

        Safe to call more than once. Undo failures are logged, not raised.

        Raises:
            TransactionError: If the transaction already committed.
        """
        if self._state is TransactionState.ROLLED_BACK:
            return
        if self._state is TransactionState.COMMITTED:
            raise TransactionError(
                f"Transaction '{self.name}' is already committed",
                details={"transaction": self.name, "state": self._state.value},
            )

        failures = 0
        for operation, token in reversed(self._completed):
            try:
                await self._undo(operation, token)
            except Exception as e:
                failures += 1
                logger.error(
                    "Rollback of %s in '%s' failed: %s", operation.describe(), self.name, e
                )

        self._completed.clear()
        self._state = TransactionState.ROLLED_BACK
        if failures:
            logger.error(
                "Transaction '%s' rolled back with %d failed undo step(s)", self.name, failures
            )
        else:
            logger.debug("Transaction '%s' rolled back", self.name)

    async def _undo(self, operation: FileOperation, token: RollbackToken) -> None:
        target = operation.target

        if operation.type is OperationType.CREATE:
            if token is None:
                return
            if operation.is_directory:
                await FileSystem.rmdir(target)
            else:
                await FileSystem.remove(target)

        elif operation.type is OperationType.COPY:
            await FileSystem.remove(target)
            if token is not None:
                await FileSystem.move_file(token, target)

        elif operation.type is OperationType.MOVE:
            if token is not None and await FileSystem.exists(target):
                await FileSystem.move_file(target, token)

        elif operation.type is OperationType.DELETE:
            if token is not None and await FileSystem.exists(token):
                await FileSystem.move_file(token, target)

        elif operation.type is OperationType.WRITE:
            if token is None:
                await FileSystem.remove(target)
            else:
                await FileSystem.move_file(token, target)

    async def _discard_aside_copies(self) -> None:
        for operation, token in self._completed:
            if token is None or operation.type not in _ASIDE_TYPES:
                continue
            try:
                await FileSystem.remove(token)
            except Exception as e:
                logger.warning("Could not remove %s after commit: %s", token, e)
        self._completed.clear()
