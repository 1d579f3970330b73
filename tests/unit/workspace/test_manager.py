"""Tests for WorkspaceManager."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from oops.config.models import OopsConfig, WorkspaceSettings
from oops.core.errors import (
    WorkspaceAlreadyInitializedError,
    WorkspaceCorruptedError,
    WorkspaceNotFoundError,
)
from oops.workspace.manager import WorkspaceManager, resolve_workspace_location
from oops.workspace.models import TrackedFile, WorkspaceState, WorkspaceType


class TestResolveLocation:
    def test_explicit_path_wins(self, temp_dir: Path) -> None:
        config = OopsConfig(workspace=WorkspaceSettings(path=str(temp_dir / "cfg")))
        path, kind = resolve_workspace_location(temp_dir / "arg", config)
        assert path == temp_dir / "arg"
        assert kind is WorkspaceType.EXPLICIT

    def test_configured_path(self, temp_dir: Path) -> None:
        config = OopsConfig(workspace=WorkspaceSettings(path=str(temp_dir / "cfg")))
        path, kind = resolve_workspace_location(None, config)
        assert path == temp_dir / "cfg"
        assert kind is WorkspaceType.EXPLICIT

    def test_environment_variable(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OOPS_WORKSPACE", str(temp_dir / "env"))
        path, kind = resolve_workspace_location(None, OopsConfig())
        assert path == temp_dir / "env"
        assert kind is WorkspaceType.EXPLICIT

    def test_default_is_local(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(temp_dir)
        path, kind = resolve_workspace_location(None, OopsConfig())
        assert path == Path(os.getcwd()) / ".oops"
        assert kind is WorkspaceType.LOCAL

    def test_use_temp_creates_nothing(self) -> None:
        config = OopsConfig(workspace=WorkspaceSettings(use_temp=True))
        path, kind = resolve_workspace_location(None, config)
        assert kind is WorkspaceType.TEMPORARY
        assert path.name.startswith("oops-temp-")
        assert not path.exists()

    def test_use_temp_names_are_unique(self) -> None:
        config = OopsConfig(workspace=WorkspaceSettings(use_temp=True))
        first, _ = resolve_workspace_location(None, config)
        second, _ = resolve_workspace_location(None, config)
        assert first != second

    def test_configured_path_beats_use_temp(self, temp_dir: Path) -> None:
        config = OopsConfig(
            workspace=WorkspaceSettings(path=str(temp_dir / "cfg"), use_temp=True)
        )
        path, kind = resolve_workspace_location(None, config)
        assert path == temp_dir / "cfg"
        assert kind is WorkspaceType.EXPLICIT

    @pytest.mark.asyncio
    async def test_use_temp_workspace_created_on_init(self) -> None:
        manager = WorkspaceManager(config=OopsConfig(workspace=WorkspaceSettings(use_temp=True)))
        assert manager.type is WorkspaceType.TEMPORARY
        assert not await manager.exists()

        await manager.init()
        try:
            assert await manager.is_healthy()
        finally:
            await manager.destroy()
        assert not manager.path.exists()


class TestInit:
    @pytest.mark.asyncio
    async def test_creates_layout(self, workspace_dir: Path, config: OopsConfig) -> None:
        manager = WorkspaceManager(workspace_dir, config)
        info = await manager.init()

        assert (workspace_dir / "files").is_dir()
        assert (workspace_dir / "versions").is_dir()
        assert json.loads((workspace_dir / "state.json").read_text())["trackedFiles"] == []
        metadata = json.loads((workspace_dir / "config.json").read_text())
        assert metadata["type"] == "explicit"
        assert info.exists and info.is_healthy
        assert info.created_at is not None

    @pytest.mark.asyncio
    async def test_init_twice_fails(self, workspace: WorkspaceManager) -> None:
        with pytest.raises(WorkspaceAlreadyInitializedError):
            await workspace.init()

    @pytest.mark.asyncio
    async def test_init_into_existing_directory(self, workspace_dir: Path) -> None:
        workspace_dir.mkdir()
        (workspace_dir / "unrelated.txt").write_text("x")

        await WorkspaceManager(workspace_dir).init()

        assert (workspace_dir / "unrelated.txt").read_text() == "x"
        assert (workspace_dir / "config.json").exists()

    @pytest.mark.asyncio
    async def test_create_temp(self) -> None:
        manager = await WorkspaceManager.create_temp()
        try:
            assert manager.type is WorkspaceType.TEMPORARY
            assert await manager.is_healthy()
            assert (await manager.read_metadata()).type is WorkspaceType.TEMPORARY
        finally:
            await manager.destroy()
        assert not manager.path.exists()


class TestHealth:
    @pytest.mark.asyncio
    async def test_missing_workspace(self, workspace_dir: Path) -> None:
        manager = WorkspaceManager(workspace_dir)
        assert not await manager.exists()
        assert not await manager.is_healthy()
        with pytest.raises(WorkspaceNotFoundError):
            await manager.require()
        with pytest.raises(WorkspaceNotFoundError):
            await manager.read_state()

    @pytest.mark.asyncio
    async def test_missing_state_is_corrupted(self, workspace: WorkspaceManager) -> None:
        workspace.state_path.unlink()
        assert not await workspace.is_healthy()
        with pytest.raises(WorkspaceCorruptedError):
            await workspace.require()

    @pytest.mark.asyncio
    async def test_invalid_json_is_corrupted(self, workspace: WorkspaceManager) -> None:
        workspace.config_path.write_text("{not json")
        assert not await workspace.is_healthy()
        with pytest.raises(WorkspaceCorruptedError) as exc_info:
            await workspace.read_metadata()
        assert exc_info.value.details["file"] == "config.json"

    @pytest.mark.asyncio
    async def test_non_object_state_is_corrupted(self, workspace: WorkspaceManager) -> None:
        workspace.state_path.write_text("[]")
        with pytest.raises(WorkspaceCorruptedError):
            await workspace.read_state()

    @pytest.mark.asyncio
    async def test_get_info_never_raises(self, workspace_dir: Path) -> None:
        manager = WorkspaceManager(workspace_dir)
        info = await manager.get_info()
        assert info.exists is False
        assert info.is_healthy is False

        workspace_dir.mkdir()
        info = await manager.get_info()
        assert info.exists is True
        assert info.is_healthy is False


class TestState:
    @pytest.mark.asyncio
    async def test_write_and_read_state(self, workspace: WorkspaceManager) -> None:
        state = WorkspaceState().with_entry(TrackedFile("/p/a.txt", backup_path="/w/b"))
        async with workspace.locks.state():
            await workspace.write_state(state)

        restored = await workspace.read_state()
        assert restored.get("/p/a.txt") is not None
        info = await workspace.get_info()
        assert [e.file_path for e in info.tracked_files] == ["/p/a.txt"]

    @pytest.mark.asyncio
    async def test_read_backup_missing_payload(self, workspace: WorkspaceManager) -> None:
        with pytest.raises(WorkspaceCorruptedError):
            await workspace.read_backup(TrackedFile("/p/a.txt"))
        with pytest.raises(WorkspaceCorruptedError):
            await workspace.read_backup(TrackedFile("/p/a.txt", backup_path="/nowhere/backup"))


class TestCleanAndSize:
    @pytest.mark.asyncio
    async def test_clean_resets_registry_and_payloads(
        self, workspace: WorkspaceManager, sample_text_file: Path
    ) -> None:
        payload = workspace.tracking_dir("abc")
        payload.mkdir()
        (payload / "backup").write_text("x")
        (workspace.version_store_dir("def")).mkdir()
        await workspace.write_state(
            WorkspaceState().with_entry(TrackedFile(str(sample_text_file)))
        )

        await workspace.clean()

        assert list(workspace.files_dir.iterdir()) == []
        assert list(workspace.versions_dir.iterdir()) == []
        assert (await workspace.read_state()).tracked_files == []
        assert workspace.config_path.exists()
        assert sample_text_file.exists()

    @pytest.mark.asyncio
    async def test_clean_missing_workspace(self, workspace_dir: Path) -> None:
        with pytest.raises(WorkspaceNotFoundError):
            await WorkspaceManager(workspace_dir).clean()

    @pytest.mark.asyncio
    async def test_get_size(
        self,
        workspace: WorkspaceManager,
        sample_text_file: Path,
        temp_project: Path,
    ) -> None:
        state = (
            WorkspaceState()
            .with_entry(TrackedFile(str(sample_text_file)))
            .with_entry(TrackedFile(str(temp_project / "deleted.txt")))
        )
        await workspace.write_state(state)

        size = await workspace.get_size()
        assert size.files == 2
        assert size.size_bytes == len("line1\nline2\n")
