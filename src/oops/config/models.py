"""Configuration models for oops.

Pydantic models for every configuration section, with defaults matching
the out-of-the-box behavior of the engine.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DiffAlgorithm(str, Enum):
    """Line diff strategies."""

    ALIGNED = "aligned"
    POSITIONAL = "positional"


class WorkspaceSettings(BaseModel):
    """Workspace location settings.

    Attributes:
        use_temp: Place the workspace in a fresh temporary directory.
        path: Explicit workspace path. Overrides the ./.oops default.
    """

    model_config = ConfigDict(validate_assignment=True)

    use_temp: bool = False
    path: str | None = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str | None) -> str | None:
        """Treat blank paths as unset."""
        if v is not None and not v.strip():
            return None
        return v


class SafetySettings(BaseModel):
    """Confirmation settings honored by interactive front ends.

    Attributes:
        confirm_keep: Ask before accepting changes.
        confirm_undo: Ask before discarding changes.
        auto_backup: Back up files automatically before tracking.
    """

    model_config = ConfigDict(validate_assignment=True)

    confirm_keep: bool = True
    confirm_undo: bool = True
    auto_backup: bool = True


class DiffSettings(BaseModel):
    """Diff engine settings.

    Attributes:
        algorithm: Line comparison strategy.
        context: Context lines around each hunk (aligned diffs only).
    """

    model_config = ConfigDict(validate_assignment=True)

    algorithm: DiffAlgorithm = DiffAlgorithm.ALIGNED
    context: int = Field(default=3, ge=0, le=100)


class OopsConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(validate_assignment=True)

    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)
    safety: SafetySettings = Field(default_factory=SafetySettings)
    diff: DiffSettings = Field(default_factory=DiffSettings)
