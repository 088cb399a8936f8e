"""
Unified diff applier.

Applies hunks from patch files to baseline files without an external patch
tool. Renames and removals are handled by the caller; this module only
rewrites file content.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from treepatch.core.diff.text_diff import NO_NEWLINE_MARKER, split_lines
from treepatch.core.exceptions import PatchError
from treepatch.core.models import FileEntry
from treepatch.services.file_io import FileIOService

HUNK_HEADER_RE = re.compile(r'^@@ -(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s+@@$')


@dataclass
class HunkInfo:
    """Parsed hunk header. Starts are 1-based as written in the header."""
    src_start: int
    src_size: int
    dst_start: int
    dst_size: int

    @property
    def src_index(self) -> int:
        # A zero-length range addresses the position after the given line
        return self.src_start if self.src_size == 0 else self.src_start - 1

    @property
    def dst_index(self) -> int:
        return self.dst_start if self.dst_size == 0 else self.dst_start - 1


class _DiffCursor:
    """0-based position within the lines of one patch file."""

    def __init__(self, lines: list[str]):
        self.lines = lines
        self.pos = 0

    def current(self) -> Optional[str]:
        return self.lines[self.pos] if self.pos < len(self.lines) else None

    def advance(self) -> None:
        self.pos += 1


class Patcher:
    """
    Applies unified diffs from a diff directory to a baseline tree.

    Source lines are read from the baseline and never modified, so hunk
    positions are absolute. Destination buffers start as copies of the
    source and are written once, after every patch has been applied.
    """

    def __init__(
        self,
        source: Path | str,
        destination: Path | str,
        file_io: Optional[FileIOService] = None
    ):
        self.source = Path(source)
        self.destination = Path(destination)
        self.file_io = file_io or FileIOService()

        self.diffs: dict[str, list[str]] = {}
        self._src_lines: dict[str, list[str]] = {}
        self._dst_lines: dict[str, list[str]] = {}
        self._encodings: dict[str, str] = {}
        self._raw: dict[str, bytes] = {}
        self._verbatim: dict[str, bytes] = {}

    @staticmethod
    def is_patch_file(path: Path | str) -> bool:
        """Check if a path is an existing regular file containing '@@'."""
        path = Path(path)
        if not path.exists() or path.is_symlink() or not path.is_file():
            return False
        return FileIOService().contains(path, '@@')

    def add_patch_file(self, entry: FileEntry) -> 'Patcher':
        """
        Register a patch file for the entry's relative path.

        Raises:
            PatchError: If the entry is not a patch file
        """
        if not self.is_patch_file(entry.path):
            logging.error(f"Patcher - Invalid patch file: {entry.path}")
            raise PatchError("Invalid patch file", str(entry.path))

        self._raw[entry.relative_path] = entry.content
        text, _ = self.file_io.decode(entry.content)
        return self.add_diff(text, entry.relative_path)

    def add_diff(self, diff: str | list[str], relative_path: str) -> 'Patcher':
        self.diffs[relative_path] = diff if isinstance(diff, list) else split_lines(diff)
        return self

    def patch(self) -> int:
        """
        Apply all registered diffs.

        Returns:
            Number of files written

        Raises:
            PatchError: On a malformed hunk or a baseline that does not match
        """
        for relative_path, lines in self.diffs.items():
            cursor = _DiffCursor(lines)
            applied = 0

            while (info := self._find_hunk(cursor, relative_path)) is not None:
                self._apply_hunk(cursor, relative_path, info)
                applied += 1

            if applied == 0:
                # Marked as a patch but without hunks: content is taken as is
                raw = self._raw.get(relative_path)
                self._verbatim[relative_path] = (
                    raw if raw is not None else self.file_io.encode('\n'.join(lines))
                )
                logging.debug(f"Patcher - No hunks in {relative_path}, copying verbatim")
            else:
                logging.debug(f"Patcher - Applied {applied} hunk(s) to {relative_path}")

        return self._write_destinations()

    def _find_hunk(self, cursor: _DiffCursor, relative_path: str) -> Optional[HunkInfo]:
        while (line := cursor.current()) is not None:
            match = HUNK_HEADER_RE.match(line)
            header_pos = cursor.pos
            cursor.advance()

            if match is None:
                continue

            if cursor.current() is None:
                logging.error(f"Patcher - Unexpected EOF in {relative_path}")
                raise PatchError("Unexpected EOF", relative_path, header_pos, line)

            return HunkInfo(
                src_start=int(match.group(1)),
                src_size=int(match.group(2)) if match.group(2) is not None else 1,
                dst_start=int(match.group(3)),
                dst_size=int(match.group(4)) if match.group(4) is not None else 1,
            )

        return None

    def _apply_hunk(self, cursor: _DiffCursor, relative_path: str, info: HunkInfo) -> None:
        src_lines = self._load_source(relative_path)
        dst_lines = self._dst_lines.setdefault(relative_path, list(src_lines))

        src_hunk: list[str] = []
        dst_hunk: list[str] = []
        src_remaining = info.src_size
        dst_remaining = info.dst_size
        src_no_eol = False
        dst_no_eol = False
        last_op: Optional[str] = None

        while src_remaining > 0 or dst_remaining > 0:
            line = cursor.current()

            if line is None:
                break

            if line == NO_NEWLINE_MARKER:
                if last_op in ('-', ' '):
                    src_no_eol = True
                if last_op in ('+', ' '):
                    dst_no_eol = True
                cursor.advance()
                continue

            op, content = line[:1], line[1:]

            if op == '-':
                if src_remaining <= 0:
                    raise self._error("Unexpected removal line", relative_path, cursor, line)
                src_hunk.append(content)
                src_remaining -= 1
            elif op == '+':
                if dst_remaining <= 0:
                    raise self._error("Unexpected addition line", relative_path, cursor, line)
                dst_hunk.append(content)
                dst_remaining -= 1
            else:
                if src_remaining <= 0 or dst_remaining <= 0:
                    raise self._error("Hunk mismatch", relative_path, cursor, line)
                op = ' '
                src_hunk.append(content)
                dst_hunk.append(content)
                src_remaining -= 1
                dst_remaining -= 1

            last_op = op
            cursor.advance()

        if src_remaining != 0 or dst_remaining != 0:
            raise self._error("Hunk mismatch", relative_path, cursor)

        # A marker may follow the last line of the hunk
        if cursor.current() == NO_NEWLINE_MARKER:
            if last_op in ('-', ' '):
                src_no_eol = True
            if last_op in ('+', ' '):
                dst_no_eol = True
            cursor.advance()

        src_idx = info.src_index
        if src_lines[src_idx:src_idx + len(src_hunk)] != src_hunk:
            raise self._error("Source file verification failed", relative_path, cursor)

        dst_idx = info.dst_index
        real_src_count = len(src_lines) - 1 if src_lines[-1] == '' else len(src_lines)

        if src_idx + len(src_hunk) >= real_src_count:
            # Hunk reaches the end of the source: the marker decides the final newline
            dst_lines[dst_idx:] = dst_hunk + ([] if dst_no_eol else [''])
        else:
            dst_lines[dst_idx:dst_idx + len(src_hunk)] = dst_hunk

    def _load_source(self, relative_path: str) -> list[str]:
        if relative_path not in self._src_lines:
            source_path = self.source / relative_path
            data = self.file_io.read_bytes(source_path) if source_path.is_file() else b''
            text, encoding = self.file_io.decode(data)
            self._src_lines[relative_path] = split_lines(text)
            self._encodings[relative_path] = encoding
        return self._src_lines[relative_path]

    def _write_destinations(self) -> int:
        for relative_path, data in self._verbatim.items():
            self.file_io.write_bytes(self.destination / relative_path, data)

        for relative_path, lines in self._dst_lines.items():
            encoding = self._encodings.get(relative_path)
            data = self.file_io.encode('\n'.join(lines), encoding)
            self.file_io.write_bytes(self.destination / relative_path, data)

        written = len(self._verbatim) + len(self._dst_lines)
        logging.info(f"Patcher - Wrote {written} file(s) to {self.destination}")
        return written

    @staticmethod
    def _error(
        message: str,
        relative_path: str,
        cursor: _DiffCursor,
        line: Optional[str] = None
    ) -> PatchError:
        logging.error(f"Patcher - {message} in {relative_path} on line {cursor.pos}")
        return PatchError(message, relative_path, cursor.pos, line)
