"""Line-level text diffs.

Two strategies are available:

- aligned (default): LCS-style alignment via difflib, so inserting a
  line reports one addition instead of shifting every later line.
- positional: compares line i of one side to line i of the other.
  Mismatches are modifications; lines past the shorter side are pure
  additions or removals.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from oops.config.models import DiffAlgorithm, DiffSettings
from oops.core.constants import DEFAULT_DIFF_CONTEXT
from oops.fs.filesystem import FileSystem, PathLike


@dataclass
class DiffResult:
    """Outcome of comparing two texts.

    Attributes:
        has_changes: True iff the texts differ.
        added_lines: Lines only on the new side.
        removed_lines: Lines only on the old side.
        modified_lines: Lines replaced in place.
        diff_text: Unified-style rendering; empty when unchanged.
    """

    has_changes: bool = False
    added_lines: int = 0
    removed_lines: int = 0
    modified_lines: int = 0
    diff_text: str = ""

    @property
    def total_changes(self) -> int:
        return self.added_lines + self.removed_lines + self.modified_lines

    def get_stat_summary(self) -> str:
        """One-line summary like ``+2 -1 ~3``."""
        if not self.has_changes:
            return "no changes"
        return f"+{self.added_lines} -{self.removed_lines} ~{self.modified_lines}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_changes": self.has_changes,
            "added_lines": self.added_lines,
            "removed_lines": self.removed_lines,
            "modified_lines": self.modified_lines,
            "diff_text": self.diff_text,
        }


def split_lines(text: str) -> list[str]:
    """Split on LF. A trailing newline yields a final empty element."""
    return text.split("\n")


class DiffEngine:
    """Compares texts and files line by line."""

    def __init__(
        self,
        algorithm: DiffAlgorithm | str = DiffAlgorithm.ALIGNED,
        context: int = DEFAULT_DIFF_CONTEXT,
    ) -> None:
        self.algorithm = DiffAlgorithm(algorithm)
        self.context = context

    @classmethod
    def from_settings(cls, settings: DiffSettings) -> DiffEngine:
        return cls(settings.algorithm, settings.context)

    def generate_diff(
        self,
        old: str,
        new: str,
        from_label: str = "a",
        to_label: str = "b",
    ) -> DiffResult:
        """Compare two texts.

        Args:
            old: Baseline text.
            new: Text to compare against the baseline.
            from_label: Name for the ``---`` header.
            to_label: Name for the ``+++`` header.
        """
        if old == new:
            return DiffResult()

        if self.algorithm is DiffAlgorithm.POSITIONAL:
            return self._positional(old, new, from_label, to_label)
        return self._aligned(old, new, from_label, to_label)

    def has_changes(self, old: str, new: str) -> bool:
        return old != new

    def get_stats(self, old: str, new: str) -> tuple[int, int, int]:
        """Return (added, removed, modified) line counts."""
        result = self.generate_diff(old, new)
        return result.added_lines, result.removed_lines, result.modified_lines

    async def diff_files(self, old_path: PathLike, new_path: PathLike) -> DiffResult:
        """Compare two files on disk.

        Raises:
            OopsFileNotFoundError: If either file is missing.
        """
        old = await FileSystem.read_file(old_path)
        new = await FileSystem.read_file(new_path)
        return self.generate_diff(
            old,
            new,
            from_label=f"a/{Path(old_path).name}",
            to_label=f"b/{Path(new_path).name}",
        )

    def _positional(self, old: str, new: str, from_label: str, to_label: str) -> DiffResult:
        old_lines = split_lines(old)
        new_lines = split_lines(new)
        common = min(len(old_lines), len(new_lines))

        modified = sum(1 for i in range(common) if old_lines[i] != new_lines[i])
        added = max(0, len(new_lines) - len(old_lines))
        removed = max(0, len(old_lines) - len(new_lines))

        out = [f"--- {from_label}", f"+++ {to_label}"]
        for i in range(max(len(old_lines), len(new_lines))):
            old_line = old_lines[i] if i < len(old_lines) else None
            new_line = new_lines[i] if i < len(new_lines) else None
            if old_line == new_line:
                continue
            out.append(f"@@ -{i + 1} +{i + 1} @@")
            if old_line is not None:
                out.append(f"-{old_line}")
            if new_line is not None:
                out.append(f"+{new_line}")

        return DiffResult(
            has_changes=True,
            added_lines=added,
            removed_lines=removed,
            modified_lines=modified,
            diff_text="\n".join(out) + "\n",
        )

    def _aligned(self, old: str, new: str, from_label: str, to_label: str) -> DiffResult:
        old_lines = split_lines(old)
        new_lines = split_lines(new)

        matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
        added = removed = modified = 0
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "insert":
                added += j2 - j1
            elif tag == "delete":
                removed += i2 - i1
            elif tag == "replace":
                old_span, new_span = i2 - i1, j2 - j1
                paired = min(old_span, new_span)
                modified += paired
                added += new_span - paired
                removed += old_span - paired

        diff_lines = difflib.unified_diff(
            old_lines,
            new_lines,
            fromfile=from_label,
            tofile=to_label,
            n=self.context,
            lineterm="",
        )

        return DiffResult(
            has_changes=True,
            added_lines=added,
            removed_lines=removed,
            modified_lines=modified,
            diff_text="\n".join(diff_lines) + "\n",
        )
