"""Async tests for concurrent engine operations.

Operations on one file are serialized by its lock; operations on
different files proceed independently, and every change to the shared
registry (state.json) is serialized by the state lock.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from oops import NoChangesError, Oops


@pytest.fixture
def many_files(temp_project: Path) -> list[Path]:
    files = []
    for i in range(8):
        path = temp_project / f"file{i}.txt"
        path.write_text(f"original {i}\n")
        files.append(path)
    return files


class TestConcurrentRegistryUpdates:
    @pytest.mark.asyncio
    async def test_concurrent_track_keeps_every_entry(
        self, oops: Oops, many_files: list[Path]
    ) -> None:
        await asyncio.gather(*(oops.track(path) for path in many_files))

        tracked = {entry.file_path for entry in await oops.get_all_tracked_files()}
        assert tracked == {str(path) for path in many_files}

    @pytest.mark.asyncio
    async def test_mixed_modes_in_parallel(self, oops: Oops, many_files: list[Path]) -> None:
        half = len(many_files) // 2
        await asyncio.gather(
            *(oops.track(path) for path in many_files[:half]),
            *(oops.create_initial_version(path) for path in many_files[half:]),
        )

        modes = [await oops.get_mode(path) for path in many_files]
        assert [m.value for m in modes] == ["backup"] * half + ["version"] * half

    @pytest.mark.asyncio
    async def test_concurrent_undo_restores_everything(
        self, oops: Oops, many_files: list[Path]
    ) -> None:
        for path in many_files:
            await oops.track(path)
            path.write_text("scribbled\n")

        await asyncio.gather(*(oops.undo(path) for path in many_files))

        for i, path in enumerate(many_files):
            assert path.read_text() == f"original {i}\n"
        assert await oops.get_all_tracked_files() == []


class TestConcurrentVersions:
    @pytest.mark.asyncio
    async def test_commits_on_different_files(self, oops: Oops, many_files: list[Path]) -> None:
        for path in many_files:
            await oops.create_initial_version(path)
            path.write_text(f"{path.name} v2\n")

        results = await asyncio.gather(
            *(oops.commit_version(path, "v2") for path in many_files)
        )

        assert [r.version for r in results] == [2] * len(many_files)
        for path in many_files:
            history = await oops.get_version_history(path)
            assert history[-1].content == f"{path.name} v2\n"

    @pytest.mark.asyncio
    async def test_same_file_commits_are_serialized(
        self, oops: Oops, sample_text_file: Path
    ) -> None:
        await oops.create_initial_version(sample_text_file)
        sample_text_file.write_text("edited\n")

        outcomes = await asyncio.gather(
            *(oops.commit_version(sample_text_file, f"attempt {i}") for i in range(5)),
            return_exceptions=True,
        )

        # Exactly one commit sees the change; the rest find nothing new
        committed = [o for o in outcomes if not isinstance(o, BaseException)]
        assert len(committed) == 1
        assert committed[0].version == 2
        assert all(isinstance(o, NoChangesError) for o in outcomes if o is not committed[0])
        history = await oops.get_version_history(sample_text_file)
        assert [r.version for r in history] == [1, 2]

    @pytest.mark.asyncio
    async def test_edit_commit_cycles_number_consecutively(
        self, oops: Oops, sample_text_file: Path
    ) -> None:
        await oops.create_initial_version(sample_text_file)

        async def edit_and_commit(i: int) -> int:
            sample_text_file.write_text(f"revision {i}\n")
            result = await oops.commit_version(sample_text_file, f"revision {i}")
            return result.version

        versions = []
        for i in range(5):
            versions.append(await edit_and_commit(i))

        history = await oops.get_version_history(sample_text_file)
        assert versions == [2, 3, 4, 5, 6]
        assert [r.version for r in history] == [1, 2, 3, 4, 5, 6]
        assert len({r.version for r in history}) == len(history)

    @pytest.mark.asyncio
    async def test_reads_during_commit(self, oops: Oops, sample_text_file: Path) -> None:
        await oops.create_initial_version(sample_text_file)
        sample_text_file.write_text("edited\n")

        commit, *reads = await asyncio.gather(
            oops.commit_version(sample_text_file, "edit"),
            *(oops.get_version_history(sample_text_file) for _ in range(5)),
        )

        assert commit.version == 2
        for history in reads:
            assert [r.version for r in history] in ([1], [1, 2])
