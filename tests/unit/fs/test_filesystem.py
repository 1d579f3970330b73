"""Tests for filesystem primitives."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from oops.core.errors import FileOperationError, OopsFileNotFoundError, OopsPermissionError
from oops.fs.filesystem import FileSystem

skip_if_root = pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="permission checks do not apply to root",
)


class TestReadWrite:
    """Tests for read_file and write_file."""

    @pytest.mark.asyncio
    async def test_round_trip_is_byte_exact(self, temp_dir: Path) -> None:
        path = temp_dir / "mixed.txt"
        content = "unix\nwindows\r\nold mac\rünïcödé\n"

        await FileSystem.write_file(path, content)

        assert path.read_bytes() == content.encode("utf-8")
        assert await FileSystem.read_file(path) == content

    @pytest.mark.asyncio
    async def test_write_replaces_content(self, temp_dir: Path) -> None:
        path = temp_dir / "a.txt"
        path.write_text("old")

        await FileSystem.write_file(path, "new")

        assert path.read_text() == "new"

    @pytest.mark.asyncio
    async def test_write_leaves_no_temp_files(self, temp_dir: Path) -> None:
        await FileSystem.write_file(temp_dir / "a.txt", "content")
        assert [p.name for p in temp_dir.iterdir()] == ["a.txt"]

    @pytest.mark.asyncio
    async def test_write_preserves_mode(self, temp_dir: Path) -> None:
        path = temp_dir / "script.sh"
        path.write_text("echo hi\n")
        path.chmod(0o755)

        await FileSystem.write_file(path, "echo bye\n")

        assert stat.S_IMODE(path.stat().st_mode) == 0o755

    @pytest.mark.asyncio
    async def test_read_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(OopsFileNotFoundError) as exc_info:
            await FileSystem.read_file(temp_dir / "missing.txt")
        assert exc_info.value.details["file_path"] == str(temp_dir / "missing.txt")

    @pytest.mark.asyncio
    async def test_read_directory(self, temp_dir: Path) -> None:
        with pytest.raises(FileOperationError):
            await FileSystem.read_file(temp_dir)

    @pytest.mark.asyncio
    async def test_read_binary_content(self, temp_dir: Path) -> None:
        path = temp_dir / "blob.bin"
        path.write_bytes(b"\xff\xfe\x00\x81")
        with pytest.raises(FileOperationError, match="not valid utf-8"):
            await FileSystem.read_file(path)

    @pytest.mark.asyncio
    async def test_write_missing_parent(self, temp_dir: Path) -> None:
        with pytest.raises(FileOperationError):
            await FileSystem.write_file(temp_dir / "nope" / "a.txt", "x")

    @skip_if_root
    @pytest.mark.asyncio
    async def test_write_permission_denied(self, temp_dir: Path) -> None:
        locked = temp_dir / "locked"
        locked.mkdir()
        locked.chmod(0o500)
        try:
            with pytest.raises(OopsPermissionError):
                await FileSystem.write_file(locked / "a.txt", "x")
        finally:
            locked.chmod(0o700)


class TestCopyMoveRemove:
    @pytest.mark.asyncio
    async def test_copy(self, temp_dir: Path) -> None:
        src = temp_dir / "src.txt"
        src.write_text("payload")

        await FileSystem.copy_file(src, temp_dir / "dst.txt")

        assert (temp_dir / "dst.txt").read_text() == "payload"
        assert src.exists()

    @pytest.mark.asyncio
    async def test_copy_missing_source(self, temp_dir: Path) -> None:
        with pytest.raises(OopsFileNotFoundError):
            await FileSystem.copy_file(temp_dir / "missing", temp_dir / "dst")

    @pytest.mark.asyncio
    async def test_move(self, temp_dir: Path) -> None:
        src = temp_dir / "src.txt"
        src.write_text("payload")

        await FileSystem.move_file(src, temp_dir / "dst.txt")

        assert not src.exists()
        assert (temp_dir / "dst.txt").read_text() == "payload"

    @pytest.mark.asyncio
    async def test_move_directory(self, temp_dir: Path) -> None:
        (temp_dir / "dir").mkdir()
        (temp_dir / "dir" / "f").write_text("x")

        await FileSystem.move_file(temp_dir / "dir", temp_dir / "moved")

        assert (temp_dir / "moved" / "f").read_text() == "x"

    @pytest.mark.asyncio
    async def test_move_missing_source(self, temp_dir: Path) -> None:
        with pytest.raises(OopsFileNotFoundError):
            await FileSystem.move_file(temp_dir / "missing", temp_dir / "dst")

    @pytest.mark.asyncio
    async def test_remove_file_and_tree(self, temp_dir: Path) -> None:
        (temp_dir / "f.txt").write_text("x")
        (temp_dir / "tree" / "sub").mkdir(parents=True)
        (temp_dir / "tree" / "sub" / "g").write_text("y")

        await FileSystem.remove(temp_dir / "f.txt")
        await FileSystem.remove(temp_dir / "tree")

        assert list(temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, temp_dir: Path) -> None:
        await FileSystem.remove(temp_dir / "missing")

    @pytest.mark.asyncio
    async def test_rmdir_non_empty_fails(self, temp_dir: Path) -> None:
        (temp_dir / "dir").mkdir()
        (temp_dir / "dir" / "f").write_text("x")
        with pytest.raises(FileOperationError):
            await FileSystem.rmdir(temp_dir / "dir")


class TestDirectoriesAndInfo:
    @pytest.mark.asyncio
    async def test_mkdir_recursive_and_idempotent(self, temp_dir: Path) -> None:
        target = temp_dir / "a" / "b" / "c"
        await FileSystem.mkdir(target)
        await FileSystem.mkdir(target)
        assert target.is_dir()

    @pytest.mark.asyncio
    async def test_mkdir_over_file(self, temp_dir: Path) -> None:
        (temp_dir / "f").write_text("x")
        with pytest.raises(FileOperationError):
            await FileSystem.mkdir(temp_dir / "f")

    @pytest.mark.asyncio
    async def test_exists(self, temp_dir: Path) -> None:
        assert await FileSystem.exists(temp_dir) is True
        assert await FileSystem.exists(temp_dir / "missing") is False
        assert await FileSystem.is_dir(temp_dir) is True
        assert await FileSystem.is_file(temp_dir) is False

    @pytest.mark.asyncio
    async def test_stat_missing(self, temp_dir: Path) -> None:
        with pytest.raises(OopsFileNotFoundError):
            await FileSystem.stat(temp_dir / "missing")

    @pytest.mark.asyncio
    async def test_file_info(self, temp_dir: Path) -> None:
        path = temp_dir / "a.txt"
        path.write_text("12345")

        info = await FileSystem.get_file_info(path)

        assert info.exists is True
        assert info.size == 5
        assert info.is_file is True
        assert info.is_directory is False
        assert info.readable is True

    @pytest.mark.asyncio
    async def test_file_info_missing(self, temp_dir: Path) -> None:
        info = await FileSystem.get_file_info(temp_dir / "missing")
        assert info.exists is False
        assert info.size == 0

    @pytest.mark.asyncio
    async def test_validate_permissions(self, temp_dir: Path) -> None:
        path = temp_dir / "a.txt"
        path.write_text("x")
        await FileSystem.validate_permissions(path, "read")
        await FileSystem.validate_permissions(path, "write")

    @pytest.mark.asyncio
    async def test_validate_permissions_missing(self, temp_dir: Path) -> None:
        with pytest.raises(OopsFileNotFoundError):
            await FileSystem.validate_permissions(temp_dir / "missing", "read")

    @skip_if_root
    @pytest.mark.asyncio
    async def test_validate_permissions_read_only(self, temp_dir: Path) -> None:
        path = temp_dir / "a.txt"
        path.write_text("x")
        path.chmod(0o400)
        with pytest.raises(OopsPermissionError):
            await FileSystem.validate_permissions(path, "write")

    @pytest.mark.asyncio
    async def test_create_temp_directory(self) -> None:
        path = await FileSystem.create_temp_directory("oops-test-")
        try:
            assert path.is_dir()
            assert path.name.startswith("oops-test-")
        finally:
            await FileSystem.remove(path)


class TestSafeHelpers:
    @pytest.mark.asyncio
    async def test_safe_write_creates_parent(self, temp_dir: Path) -> None:
        path = temp_dir / "new" / "dir" / "a.txt"
        await FileSystem.safe_write_file(path, "hello")
        assert path.read_text() == "hello"

    @pytest.mark.asyncio
    async def test_safe_copy_creates_parent(self, temp_dir: Path) -> None:
        src = temp_dir / "src.txt"
        src.write_text("payload")
        await FileSystem.safe_copy_file(src, temp_dir / "out" / "dst.txt")
        assert (temp_dir / "out" / "dst.txt").read_text() == "payload"

    @pytest.mark.asyncio
    async def test_safe_copy_failure_removes_created_parent(self, temp_dir: Path) -> None:
        with pytest.raises(OopsFileNotFoundError):
            await FileSystem.safe_copy_file(temp_dir / "missing", temp_dir / "out" / "dst")
        assert not (temp_dir / "out").exists()

    @pytest.mark.asyncio
    async def test_safe_move(self, temp_dir: Path) -> None:
        src = temp_dir / "src.txt"
        src.write_text("payload")
        await FileSystem.safe_move_file(src, temp_dir / "out" / "dst.txt")
        assert not src.exists()
        assert (temp_dir / "out" / "dst.txt").read_text() == "payload"

    @pytest.mark.asyncio
    async def test_safe_delete_leaves_nothing_behind(self, temp_dir: Path) -> None:
        path = temp_dir / "a.txt"
        path.write_text("x")
        await FileSystem.safe_delete_file(path)
        assert list(temp_dir.iterdir()) == []
