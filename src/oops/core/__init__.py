"""Core package containing errors, logging, constants and path helpers."""

from oops.core.errors import (
    ConfigError,
    FileAlreadyTrackedError,
    FileNotTrackedError,
    FileOperationError,
    NoChangesError,
    OopsError,
    OopsFileNotFoundError,
    OopsPermissionError,
    TransactionError,
    ValidationError,
    VersionNotFoundError,
    WorkspaceAlreadyInitializedError,
    WorkspaceCorruptedError,
    WorkspaceNotFoundError,
)
from oops.core.logging import get_logger, setup_logging
from oops.core.paths import canonical_path, content_checksum, file_hash

__all__ = [
    "ConfigError",
    "FileAlreadyTrackedError",
    "FileNotTrackedError",
    "FileOperationError",
    "NoChangesError",
    "OopsError",
    "OopsFileNotFoundError",
    "OopsPermissionError",
    "TransactionError",
    "ValidationError",
    "VersionNotFoundError",
    "WorkspaceAlreadyInitializedError",
    "WorkspaceCorruptedError",
    "WorkspaceNotFoundError",
    "canonical_path",
    "content_checksum",
    "file_hash",
    "get_logger",
    "setup_logging",
]
