"""Workspace management."""

from oops.workspace.manager import WorkspaceManager, resolve_workspace_location
from oops.workspace.models import (
    TrackedFile,
    TrackingMode,
    WorkspaceInfo,
    WorkspaceMetadata,
    WorkspaceSize,
    WorkspaceState,
    WorkspaceType,
)

__all__ = [
    "TrackedFile",
    "TrackingMode",
    "WorkspaceInfo",
    "WorkspaceManager",
    "WorkspaceMetadata",
    "WorkspaceSize",
    "WorkspaceState",
    "WorkspaceType",
    "resolve_workspace_location",
]
