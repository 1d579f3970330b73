"""Filesystem primitives for oops.

Thin async wrappers around blocking filesystem calls. Each wrapper runs
its work in the default executor and translates OSError into the
engine's typed errors, so callers never see raw FileNotFoundError or
PermissionError.

Text content is read and written as UTF-8 with newline translation
disabled, which keeps file content byte-for-byte identical across a
read/write round trip.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial
from pathlib import Path
from typing import Literal, TypeVar

from oops.core.constants import TEMP_WORKSPACE_PREFIX, TEXT_ENCODING
from oops.core.errors import (
    FileOperationError,
    OopsError,
    OopsFileNotFoundError,
    OopsPermissionError,
)
from oops.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

PathLike = str | os.PathLike[str]

# Mode for files created from scratch by atomic writes
NEW_FILE_MODE = 0o644


@dataclass
class FileInfo:
    """Metadata about a path.

    Attributes:
        exists: Whether the path exists.
        size: Size in bytes (0 if missing).
        modified: Last modification time (epoch if missing).
        is_file: Path is a regular file.
        is_directory: Path is a directory.
        readable: Current process can read it.
        writable: Current process can write it.
    """

    exists: bool
    size: int = 0
    modified: datetime = datetime.fromtimestamp(0, UTC)
    is_file: bool = False
    is_directory: bool = False
    readable: bool = False
    writable: bool = False


async def _run(func: Callable[..., T], *args: object) -> T:
    """Run a blocking callable in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args))


def _translate(
    error: OSError,
    path: PathLike,
    operation: str,
    missing_is_not_found: bool = True,
) -> OopsError:
    """Map an OSError onto the engine's error hierarchy.

    Args:
        error: The original error.
        path: Path the operation targeted.
        operation: Short operation name for messages.
        missing_is_not_found: Report ENOENT as a missing target. When
            False (writes), ENOENT means a missing parent directory.
    """
    path_str = os.fspath(path)
    if isinstance(error, FileNotFoundError) and missing_is_not_found:
        return OopsFileNotFoundError(path_str)
    if isinstance(error, PermissionError):
        return OopsPermissionError(path_str, operation)
    return FileOperationError(operation, path_str, error.strerror or str(error))


# =============================================================================
# Blocking implementations (run in executor)
# =============================================================================


def _read_text(path: Path) -> str:
    try:
        with path.open(encoding=TEXT_ENCODING, newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise FileOperationError("read", str(path), f"not valid {TEXT_ENCODING} text") from e
    except IsADirectoryError as e:
        raise FileOperationError("read", str(path), "is a directory") from e
    except OSError as e:
        raise _translate(e, path, "read") from e


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except IsADirectoryError as e:
        raise FileOperationError("read", str(path), "is a directory") from e
    except OSError as e:
        raise _translate(e, path, "read") from e


def _atomic_write_text(path: Path, content: str) -> None:
    """Write via temp file + rename so readers never see partial content."""
    try:
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=path.parent,
        )
    except OSError as e:
        raise _translate(e, path, "write", missing_is_not_found=False) from e

    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding=TEXT_ENCODING, newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        if path.exists():
            with contextlib.suppress(OSError):
                shutil.copymode(path, temp_path)
        else:
            with contextlib.suppress(OSError):
                temp_path.chmod(NEW_FILE_MODE)

        # Atomic on POSIX
        temp_path.replace(path)
    except OSError as e:
        with contextlib.suppress(OSError):
            temp_path.unlink()
        raise _translate(e, path, "write", missing_is_not_found=False) from e
    except BaseException:
        with contextlib.suppress(OSError):
            temp_path.unlink()
        raise


def _copy(source: Path, destination: Path) -> None:
    if not source.exists():
        raise OopsFileNotFoundError(str(source))
    try:
        shutil.copy2(source, destination)
    except OSError as e:
        raise _translate(e, destination, "copy", missing_is_not_found=False) from e


def _move(source: Path, destination: Path) -> None:
    if not os.path.lexists(source):
        raise OopsFileNotFoundError(str(source))
    try:
        source.replace(destination)
    except OSError as e:
        raise _translate(e, destination, "move", missing_is_not_found=False) from e


def _mkdir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except FileExistsError as e:
        raise FileOperationError("mkdir", str(path), "a file exists at this path") from e
    except OSError as e:
        raise _translate(e, path, "create", missing_is_not_found=False) from e


def _remove(path: Path) -> None:
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        return
    except OSError as e:
        raise _translate(e, path, "remove") from e


def _rmdir(path: Path) -> None:
    try:
        path.rmdir()
    except FileNotFoundError:
        return
    except OSError as e:
        raise _translate(e, path, "remove") from e


def _stat(path: Path) -> os.stat_result:
    try:
        return path.stat()
    except OSError as e:
        raise _translate(e, path, "stat") from e


def _file_info(path: Path) -> FileInfo:
    try:
        st = path.stat()
    except FileNotFoundError:
        return FileInfo(exists=False)
    except OSError as e:
        raise _translate(e, path, "stat") from e

    return FileInfo(
        exists=True,
        size=st.st_size,
        modified=datetime.fromtimestamp(st.st_mtime, UTC),
        is_file=path.is_file(),
        is_directory=path.is_dir(),
        readable=os.access(path, os.R_OK),
        writable=os.access(path, os.W_OK),
    )


def _validate_permissions(path: Path, operation: str) -> None:
    _stat(path)
    mode = os.R_OK if operation == "read" else os.W_OK
    if not os.access(path, mode):
        raise OopsPermissionError(str(path), operation)


# =============================================================================
# Public API
# =============================================================================


class FileSystem:
    """Async filesystem primitives with typed failures."""

    @staticmethod
    async def exists(path: PathLike) -> bool:
        """Check whether a path exists. Never raises."""
        return await _run(os.path.exists, os.fspath(path))

    @staticmethod
    async def is_file(path: PathLike) -> bool:
        return await _run(os.path.isfile, os.fspath(path))

    @staticmethod
    async def is_dir(path: PathLike) -> bool:
        return await _run(os.path.isdir, os.fspath(path))

    @staticmethod
    async def read_file(path: PathLike) -> str:
        """Read a text file.

        Raises:
            OopsFileNotFoundError: If the file does not exist.
            OopsPermissionError: If reading is denied.
            FileOperationError: For directories or undecodable content.
        """
        return await _run(_read_text, Path(path))

    @staticmethod
    async def read_bytes(path: PathLike) -> bytes:
        """Read a file as raw bytes, whatever its encoding.

        Raises:
            OopsFileNotFoundError: If the file does not exist.
            OopsPermissionError: If reading is denied.
        """
        return await _run(_read_bytes, Path(path))

    @staticmethod
    async def write_file(path: PathLike, content: str) -> None:
        """Atomically write a text file.

        Raises:
            OopsPermissionError: If writing is denied.
            FileOperationError: If the parent directory is missing.
        """
        await _run(_atomic_write_text, Path(path), content)

    @staticmethod
    async def copy_file(source: PathLike, destination: PathLike) -> None:
        """Copy a file, preserving metadata.

        Raises:
            OopsFileNotFoundError: If the source does not exist.
        """
        await _run(_copy, Path(source), Path(destination))

    @staticmethod
    async def move_file(source: PathLike, destination: PathLike) -> None:
        """Rename a file or directory, replacing any file at destination."""
        await _run(_move, Path(source), Path(destination))

    @staticmethod
    async def mkdir(path: PathLike) -> None:
        """Create a directory and any missing parents."""
        await _run(_mkdir, Path(path))

    @staticmethod
    async def stat(path: PathLike) -> os.stat_result:
        return await _run(_stat, Path(path))

    @staticmethod
    async def remove(path: PathLike) -> None:
        """Remove a file or directory tree. Missing paths are ignored."""
        await _run(_remove, Path(path))

    @staticmethod
    async def rmdir(path: PathLike) -> None:
        """Remove an empty directory. Missing paths are ignored."""
        await _run(_rmdir, Path(path))

    @staticmethod
    async def get_file_info(path: PathLike) -> FileInfo:
        return await _run(_file_info, Path(path))

    @staticmethod
    async def validate_permissions(
        path: PathLike,
        operation: Literal["read", "write"],
    ) -> None:
        """Check the current process may read or write a path.

        Raises:
            OopsFileNotFoundError: If the path does not exist.
            OopsPermissionError: If access is denied.
        """
        await _run(_validate_permissions, Path(path), operation)

    @staticmethod
    async def create_temp_directory(prefix: str = TEMP_WORKSPACE_PREFIX) -> Path:
        """Create a fresh temporary directory."""
        try:
            name = await _run(tempfile.mkdtemp, None, prefix)
        except OSError as e:
            raise FileOperationError("create_temp_dir", prefix, str(e)) from e
        logger.debug("Created temporary directory %s", name)
        return Path(name)

    # -------------------------------------------------------------------------
    # Transactional helpers
    # -------------------------------------------------------------------------

    @staticmethod
    async def safe_write_file(path: PathLike, content: str) -> None:
        """Write a file, creating its parent directory, all-or-nothing."""
        from oops.fs.transaction import FileOperations, Transaction

        transaction = Transaction("safe_write")
        parent = Path(path).parent
        if not await FileSystem.exists(parent):
            transaction.add_operation(FileOperations.create_directory(parent))
        transaction.add_operation(FileOperations.write_file(path, content))
        await transaction.execute()

    @staticmethod
    async def safe_copy_file(source: PathLike, destination: PathLike) -> None:
        """Copy a file, creating the destination directory, all-or-nothing."""
        from oops.fs.transaction import FileOperations, Transaction

        transaction = Transaction("safe_copy")
        parent = Path(destination).parent
        if not await FileSystem.exists(parent):
            transaction.add_operation(FileOperations.create_directory(parent))
        transaction.add_operation(FileOperations.copy_file(source, destination))
        await transaction.execute()

    @staticmethod
    async def safe_move_file(source: PathLike, destination: PathLike) -> None:
        """Move a file, creating the destination directory, all-or-nothing."""
        from oops.fs.transaction import FileOperations, Transaction

        transaction = Transaction("safe_move")
        parent = Path(destination).parent
        if not await FileSystem.exists(parent):
            transaction.add_operation(FileOperations.create_directory(parent))
        transaction.add_operation(FileOperations.move_file(source, destination))
        await transaction.execute()

    @staticmethod
    async def safe_delete_file(path: PathLike) -> None:
        """Delete a file; the content is held aside until the delete commits."""
        from oops.fs.transaction import FileOperations, Transaction

        transaction = Transaction("safe_delete")
        transaction.add_operation(FileOperations.delete_file(path))
        await transaction.execute()
