"""Shared test fixtures for oops tests.

Fixture Dependency Hierarchy
============================

::

    temp_dir (base temporary directory)
    ├── temp_home (isolated HOME, no user settings leak in)
    └── temp_project (isolated project directory)
        ├── workspace_dir (project/.oops, not created)
        │   └── workspace (initialized WorkspaceManager)
        │       ├── tracker (BackupTracker)
        │       └── versions (VersionManager)
        │   └── oops (initialized Oops client)
        ├── sample_text_file (notes.txt = "line1\\nline2\\n")
        └── second_text_file (todo.txt)

Notes:
- Every test runs with OOPS_* environment variables removed
- Async fixtures run under pytest-asyncio (asyncio_mode = auto)
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from oops.client import Oops
from oops.config.models import OopsConfig
from oops.diff.engine import DiffEngine
from oops.tracking.tracker import BackupTracker
from oops.versions.manager import VersionManager
from oops.workspace.manager import WorkspaceManager

SAMPLE_CONTENT = "line1\nline2\n"


# ============================================================
# Environment
# ============================================================


@pytest.fixture(autouse=True)
def clean_oops_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove OOPS_* variables so the host environment cannot leak in."""
    for name in list(os.environ):
        if name.startswith("OOPS_"):
            monkeypatch.delenv(name, raising=False)


# ============================================================
# Directory Fixtures
# ============================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Yields:
        Path to temporary directory that is cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory and point HOME at it."""
    home = temp_dir / "home"
    home.mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def temp_project(temp_dir: Path) -> Path:
    """Create a temporary project directory."""
    project = temp_dir / "project"
    project.mkdir(parents=True)
    return project


@pytest.fixture
def workspace_dir(temp_project: Path) -> Path:
    """Workspace location inside the project (not created)."""
    return temp_project / ".oops"


# ============================================================
# File Fixtures
# ============================================================


@pytest.fixture
def sample_text_file(temp_project: Path) -> Path:
    """notes.txt with two lines."""
    path = temp_project / "notes.txt"
    path.write_text(SAMPLE_CONTENT, encoding="utf-8")
    return path


@pytest.fixture
def second_text_file(temp_project: Path) -> Path:
    """todo.txt, independent of notes.txt."""
    path = temp_project / "todo.txt"
    path.write_text("buy milk\n", encoding="utf-8")
    return path


# ============================================================
# Engine Fixtures
# ============================================================


@pytest.fixture
def config() -> OopsConfig:
    """Default configuration (no settings files consulted)."""
    return OopsConfig()


@pytest.fixture
async def workspace(workspace_dir: Path, config: OopsConfig) -> WorkspaceManager:
    """Initialized workspace."""
    manager = WorkspaceManager(workspace_dir, config)
    await manager.init()
    return manager


@pytest.fixture
def tracker(workspace: WorkspaceManager) -> BackupTracker:
    return BackupTracker(workspace, DiffEngine())


@pytest.fixture
def versions(workspace: WorkspaceManager) -> VersionManager:
    return VersionManager(workspace, DiffEngine())


@pytest.fixture
async def oops(workspace_dir: Path, config: OopsConfig) -> Oops:
    """Oops client on an initialized workspace."""
    client = Oops(config, workspace_dir)
    await client.init()
    return client
