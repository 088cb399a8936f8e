"""
Folder comparison engine.

Compares two indexed directory trees and identifies:
- Files only in right (absent in left)
- Files only in left (absent in right)
- Files present on both sides with different content
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from treepatch.core.diff.text_diff import Diff, TextCompareOptions
from treepatch.core.folder.scanner import Index
from treepatch.core.models import FileEntry

DiffFilter = Callable[[Diff], bool]


class Differ:
    """Collection of per-path diffs with classified views."""

    def __init__(self):
        self.diffs: dict[str, Diff] = {}

    def __len__(self) -> int:
        return len(self.diffs)

    def add_left(self, entry: FileEntry) -> 'Differ':
        self._get_or_create(entry.relative_path).set_left(entry)
        return self

    def add_right(self, entry: FileEntry) -> 'Differ':
        self._get_or_create(entry.relative_path).set_right(entry)
        return self

    def get(self, relative_path: str) -> Optional[Diff]:
        return self.diffs.get(relative_path)

    def absent_left(self, cb: Optional[DiffFilter] = None) -> dict[str, Diff]:
        """Diffs that exist only on the right."""
        return self._filter(lambda d: not d.exists_left and d.exists_right, cb)

    def absent_right(self, cb: Optional[DiffFilter] = None) -> dict[str, Diff]:
        """Diffs that exist only on the left."""
        return self._filter(lambda d: d.exists_left and not d.exists_right, cb)

    def content_diffs(self, cb: Optional[DiffFilter] = None) -> dict[str, Diff]:
        """Diffs present on both sides whose content differs."""
        return self._filter(
            lambda d: d.exists_left and d.exists_right and not d.is_same_content(),
            cb
        )

    def has_differences(self) -> bool:
        return bool(self.absent_left() or self.absent_right() or self.content_diffs())

    def _get_or_create(self, relative_path: str) -> Diff:
        diff = self.diffs.get(relative_path)
        if diff is None:
            diff = self.diffs[relative_path] = Diff()
        return diff

    def _filter(self, predicate: DiffFilter, cb: Optional[DiffFilter]) -> dict[str, Diff]:
        result = {}
        for path in sorted(self.diffs):
            diff = self.diffs[path]
            if predicate(diff) and (cb is None or cb(diff)):
                result[path] = diff
        return result


@dataclass
class RenderOptions:
    """Options for the comparison report."""
    show_diff: bool = True
    # Number of content diffs rendered in full; None renders all
    show_diff_file_limit: Optional[int] = 10
    context_lines: int = 3


ComparerRenderer = Callable[[Index, Index, Differ, RenderOptions], Optional[str]]


class Comparer:
    """
    Compares two indexes.

    Usage::

        comparer = Comparer(Index(left), Index(right)).compare()
        report = comparer.render()
    """

    def __init__(self, left: Index, right: Index):
        self.left = left
        self.right = right
        self.differ = Differ()

    def compare(self) -> 'Comparer':
        left_files = self.left.files
        right_files = self.right.files

        for path, entry in left_files.items():
            self.differ.add_left(entry)
            if path in right_files:
                self.differ.add_right(right_files[path])

        for path, entry in right_files.items():
            self.differ.add_right(entry)
            if path in left_files:
                self.differ.add_left(left_files[path])

        logging.info(
            f"Comparer - Compared {len(left_files)} left and {len(right_files)} right entries: "
            f"{len(self.differ.absent_left())} absent in left, "
            f"{len(self.differ.absent_right())} absent in right, "
            f"{len(self.differ.content_diffs())} differ in content"
        )
        return self

    def render(
        self,
        options: Optional[RenderOptions] = None,
        renderer: Optional[ComparerRenderer] = None
    ) -> Optional[str]:
        """
        Render a report of the differences.

        Returns:
            The report, or None when there are no differences
        """
        options = options or RenderOptions()
        return (renderer or self.default_renderer)(self.left, self.right, self.differ, options)

    @staticmethod
    def default_renderer(
        left: Index,
        right: Index,
        differ: Differ,
        options: RenderOptions
    ) -> Optional[str]:
        absent_left = differ.absent_left()
        absent_right = differ.absent_right()
        content_diffs = differ.content_diffs()

        if not absent_left and not absent_right and not content_diffs:
            return None

        parts = [f"Differences between directories \n[left] {left.directory}\nand\n[right] {right.directory}\n"]

        if absent_left:
            parts.append("Files absent in [left]:\n")
            parts.extend(f"  {path}\n" for path in absent_left)

        if absent_right:
            parts.append("Files absent in [right]:\n")
            parts.extend(f"  {path}\n" for path in absent_right)

        if content_diffs:
            parts.append("Files that differ in content:\n")

            remaining = options.show_diff_file_limit
            if remaining is None:
                remaining = len(content_diffs)

            text_options = TextCompareOptions(context_lines=options.context_lines)
            for path, diff in content_diffs.items():
                parts.append(f"  {path}\n")

                if options.show_diff and remaining > 0:
                    parts.append("--- DIFF START ---\n")
                    parts.append(diff.render(text_options))
                    parts.append("--- DIFF END ---\n")
                    remaining -= 1

        return ''.join(parts)
