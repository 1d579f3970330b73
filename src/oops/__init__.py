"""Oops - lightweight safety net for editing individual text files."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("oops-keeper")
except PackageNotFoundError:
    __version__ = "0.0.0"  # Fallback for development/testing

from oops.client import Oops  # noqa: E402
from oops.config import OopsConfig  # noqa: E402
from oops.core.errors import (  # noqa: E402
    FileAlreadyTrackedError,
    FileNotTrackedError,
    NoChangesError,
    OopsError,
    OopsFileNotFoundError,
    VersionNotFoundError,
    WorkspaceCorruptedError,
    WorkspaceNotFoundError,
)
from oops.workspace.models import TrackingMode  # noqa: E402

__all__ = [
    "FileAlreadyTrackedError",
    "FileNotTrackedError",
    "NoChangesError",
    "Oops",
    "OopsConfig",
    "OopsError",
    "OopsFileNotFoundError",
    "TrackingMode",
    "VersionNotFoundError",
    "WorkspaceCorruptedError",
    "WorkspaceNotFoundError",
    "__version__",
]
