"""Error hierarchy for the oops engine.

Every failure surfaced by the engine is an OopsError subclass with a
stable ``code`` string and a ``details`` dict, so callers (for example a
command-line front end) can map failures to messages and exit codes
without parsing message text.
"""

from __future__ import annotations

from typing import Any


class OopsError(Exception):
    """Base class for all engine errors.

    Attributes:
        message: Human-readable description.
        code: Stable machine-readable error code.
        details: Extra context (paths, version numbers, ...).
    """

    code: str = "OOPS_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details: dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for structured output."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class OopsFileNotFoundError(OopsError):
    """Target file does not exist."""

    code = "FILE_NOT_FOUND"

    def __init__(self, file_path: str, **details: Any) -> None:
        super().__init__(
            f"File not found: {file_path}",
            details={"file_path": file_path, **details},
        )


class FileAlreadyTrackedError(OopsError):
    """File is already under tracking in some mode."""

    code = "FILE_ALREADY_TRACKED"

    def __init__(self, file_path: str, **details: Any) -> None:
        super().__init__(
            f"File is already being tracked: {file_path}",
            details={"file_path": file_path, **details},
        )


class FileNotTrackedError(OopsError):
    """File has no tracking record for the requested mode."""

    code = "FILE_NOT_TRACKED"

    def __init__(self, file_path: str, **details: Any) -> None:
        super().__init__(
            f"File is not being tracked: {file_path}",
            details={"file_path": file_path, **details},
        )


class NoChangesError(OopsError):
    """Commit requested but working content equals the current version.

    This is the one recoverable failure: callers usually report
    "nothing to commit" and carry on.
    """

    code = "VERSION_NO_CHANGES"

    def __init__(self, file_path: str, version: int, **details: Any) -> None:
        super().__init__(
            f"No changes detected since version {version}: {file_path}",
            details={"file_path": file_path, "version": version, **details},
        )


class VersionNotFoundError(OopsError):
    """Requested version number is absent from the version log."""

    code = "VERSION_NOT_FOUND"

    def __init__(self, file_path: str, version: int, **details: Any) -> None:
        super().__init__(
            f"Version {version} not found for {file_path}",
            details={"file_path": file_path, "version": version, **details},
        )


class WorkspaceNotFoundError(OopsError):
    """Workspace root directory is missing."""

    code = "WORKSPACE_NOT_FOUND"

    def __init__(self, workspace_path: str, **details: Any) -> None:
        super().__init__(
            f"Workspace not found: {workspace_path}",
            details={"workspace_path": workspace_path, **details},
        )


class WorkspaceCorruptedError(OopsError):
    """Workspace exists but required metadata is missing or unparseable."""

    code = "WORKSPACE_CORRUPTED"

    def __init__(self, workspace_path: str, **details: Any) -> None:
        super().__init__(
            f"Workspace is corrupted: {workspace_path}",
            details={"workspace_path": workspace_path, **details},
        )


class WorkspaceAlreadyInitializedError(OopsError):
    """init() called against an already-initialized workspace."""

    code = "WORKSPACE_EXISTS"

    def __init__(self, workspace_path: str, **details: Any) -> None:
        super().__init__(
            f"Workspace already initialized: {workspace_path}",
            details={"workspace_path": workspace_path, **details},
        )


class OopsPermissionError(OopsError):
    """Filesystem call was denied."""

    code = "PERMISSION_ERROR"

    def __init__(self, path: str, operation: str, **details: Any) -> None:
        super().__init__(
            f"Permission denied: {operation} on {path}",
            details={"path": path, "operation": operation, **details},
        )


class FileOperationError(OopsError):
    """Any other filesystem failure (missing parent, bad encoding, ...)."""

    code = "FILE_OPERATION_ERROR"

    def __init__(self, operation: str, path: str, reason: str, **details: Any) -> None:
        super().__init__(
            f"File operation '{operation}' failed on {path}: {reason}",
            details={"operation": operation, "path": path, "reason": reason, **details},
        )


class TransactionError(OopsError):
    """Transaction used after it reached a terminal state."""

    code = "TRANSACTION_COMPLETED"


class ValidationError(OopsError):
    """Caller passed an invalid argument."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(f"Validation failed: {message}", details=details)


class ConfigError(OopsError):
    """Configuration could not be loaded or validated."""

    code = "CONFIG_ERROR"
