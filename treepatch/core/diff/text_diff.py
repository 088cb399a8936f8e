"""
Text diff engine and per-path diff model.

Provides:
- Line splitting on CRLF, CR and LF
- Unified diff rendering with hunk headers only (no file headers)
- Diff, the pairing of a left and right entry for one relative path
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence

from treepatch.core.models import FileEntry
from treepatch.services.file_io import FileIOService

LINE_SPLIT_RE = re.compile(r'\r\n|\r|\n')
NO_NEWLINE_MARKER = '\\ No newline at end of file'


def split_lines(text: str) -> list[str]:
    """
    Split text on any line ending.

    A trailing line ending produces a final empty element, so joining the
    result with '\\n' restores the text with normalized endings.
    """
    return LINE_SPLIT_RE.split(text)


@dataclass
class TextCompareOptions:
    """Options for text comparison."""
    context_lines: int = 3


class TextDiffEngine:
    """
    Engine for rendering unified diffs between two texts.

    Lines are compared with their endings normalized, so a CRLF file and an
    LF file with the same lines produce no hunks. A missing final line
    ending is significant and is reported with the standard marker.
    """

    def __init__(self, options: Optional[TextCompareOptions] = None):
        self.options = options or TextCompareOptions()

    def unified_diff(self, left_text: str, right_text: str) -> str:
        """
        Render a unified diff.

        Args:
            left_text: Original text
            right_text: Modified text

        Returns:
            Hunks joined by newlines, or an empty string if the texts have
            the same lines
        """
        return ''.join(line + '\n' for line in self.iter_hunk_lines(left_text, right_text))

    def iter_hunk_lines(self, left_text: str, right_text: str) -> Iterator[str]:
        left = self._terminated_lines(left_text)
        right = self._terminated_lines(right_text)

        matcher = difflib.SequenceMatcher(None, left, right, autojunk=False)

        for group in matcher.get_grouped_opcodes(self.options.context_lines):
            first, last = group[0], group[-1]
            left_range = _format_range(first[1], last[2])
            right_range = _format_range(first[3], last[4])
            yield f"@@ -{left_range} +{right_range} @@"

            for tag, i1, i2, j1, j2 in group:
                if tag == 'equal':
                    yield from self._prefixed(' ', left[i1:i2])
                    continue
                if tag in ('replace', 'delete'):
                    yield from self._prefixed('-', left[i1:i2])
                if tag in ('replace', 'insert'):
                    yield from self._prefixed('+', right[j1:j2])

    @staticmethod
    def _terminated_lines(text: str) -> list[str]:
        """Lines with a normalized '\\n' ending; the last one may lack it."""
        lines = split_lines(text)
        last = lines.pop()
        result = [line + '\n' for line in lines]
        if last:
            result.append(last)
        return result

    @staticmethod
    def _prefixed(prefix: str, lines: Sequence[str]) -> Iterator[str]:
        for line in lines:
            if line.endswith('\n'):
                yield prefix + line[:-1]
            else:
                yield prefix + line
                yield NO_NEWLINE_MARKER


def _format_range(start: int, stop: int) -> str:
    """Convert a slice range to the 'start[,length]' hunk header form."""
    beginning = start + 1
    length = stop - start
    if length == 1:
        return str(beginning)
    if not length:
        beginning -= 1
    return f"{beginning},{length}"


DiffRenderer = Callable[['Diff'], str]


class Diff:
    """
    Left and right entries for one relative path.

    Either side may be missing. Content sameness uses the cached entry
    hashes; the line diff is only computed when rendering.
    """

    def __init__(
        self,
        left: Optional[FileEntry] = None,
        right: Optional[FileEntry] = None,
        file_io: Optional[FileIOService] = None
    ):
        self.left = left
        self.right = right
        self.file_io = file_io or FileIOService()

    def __repr__(self) -> str:
        return f"Diff({self.relative_path!r}, left={self.exists_left}, right={self.exists_right})"

    @property
    def relative_path(self) -> Optional[str]:
        entry = self.left or self.right
        return entry.relative_path if entry else None

    @property
    def exists_left(self) -> bool:
        return self.left is not None

    @property
    def exists_right(self) -> bool:
        return self.right is not None

    def set_left(self, entry: FileEntry) -> 'Diff':
        self.left = entry
        return self

    def set_right(self, entry: FileEntry) -> 'Diff':
        self.right = entry
        return self

    def is_same_content(self) -> bool:
        """
        Check whether both sides have the same content.

        Ignore-content entries always compare equal. A missing side never
        does.
        """
        if self.left is None or self.right is None:
            return False

        if self.left.is_ignore_content or self.right.is_ignore_content:
            return True

        return self.left.hash == self.right.hash

    def render(
        self,
        options: Optional[TextCompareOptions] = None,
        renderer: Optional[DiffRenderer] = None
    ) -> str:
        """
        Render the difference between both sides.

        Same content renders as the left text. Otherwise a unified diff is
        produced, which is empty when the sides differ only in line endings.
        A missing side is treated as empty.
        """
        if renderer is not None:
            return renderer(self)

        left_text = self._text(self.left)

        if self.is_same_content():
            return left_text

        return TextDiffEngine(options).unified_diff(left_text, self._text(self.right))

    def _text(self, entry: Optional[FileEntry]) -> str:
        if entry is None:
            return ''
        return self.file_io.decode(entry.content)[0]
