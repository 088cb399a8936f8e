"""
Directory indexer for tree comparison.

Builds a sorted map of root-relative paths to FileEntry objects with:
- Rule-based filtering (global, skip, include, ignore-content)
- Symlinks listed as entries, never followed
- An optional content callback to drop entries (e.g. binary files)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from treepatch.core.folder.rules import Rules
from treepatch.core.models import FileEntry, strip_base_path

ContentCallback = Callable[[FileEntry], Any]

RULES_FILENAME = '.ignorecontent'
DEFAULT_SKIP_PATTERNS = ['.git/']


class Index:
    """
    Indexed view of one directory tree.

    The tree is scanned on first access to ``files`` and memoized. When no
    rules are given, the rule file at the root is loaded if present. The
    rule file itself and the default skip patterns are always skipped.
    Given rules are copied before the defaults are added.
    """

    def __init__(
        self,
        directory: Path | str,
        rules: Optional[Rules] = None,
        before_match_content: Optional[ContentCallback] = None,
        rules_filename: str = RULES_FILENAME,
        default_skip_patterns: Optional[list[str]] = None
    ):
        self.directory = Path(directory).absolute()
        self.before_match_content = before_match_content
        self.rules_filename = rules_filename

        if rules is None:
            rules_path = self.directory / rules_filename
            rules = Rules.from_file(rules_path) if rules_path.is_file() else Rules()
        else:
            rules = rules.copy()

        if default_skip_patterns is None:
            default_skip_patterns = DEFAULT_SKIP_PATTERNS

        for pattern in [rules_filename, *default_skip_patterns]:
            if not rules.has_skip(pattern):
                rules.add_skip(pattern)

        self.rules = rules
        self._files: Optional[dict[str, FileEntry]] = None

    def __repr__(self) -> str:
        return f"Index({str(self.directory)!r})"

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self.files.values())

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, relative_path: str) -> bool:
        return relative_path in self.files

    @property
    def files(self) -> dict[str, FileEntry]:
        """Relative path to entry, sorted by path."""
        if self._files is None:
            self._files = self._scan()
        return self._files

    def get(self, relative_path: str) -> Optional[FileEntry]:
        return self.files.get(relative_path)

    def _scan(self) -> dict[str, FileEntry]:
        root = self.directory

        if not root.exists():
            logging.error(f"Index - Root path not found: {root}")
            raise FileNotFoundError(f"Directory not found: {root}")

        if not root.is_dir():
            logging.error(f"Index - Root path is not a directory: {root}")
            raise NotADirectoryError(f"Not a directory: {root}")

        files: dict[str, FileEntry] = {}

        def on_walk_error(error: OSError):
            logging.warning(f"Index - Walk error at {error.filename}: {error}")

        for dirpath, dirnames, filenames in os.walk(
            root,
            topdown=True,
            followlinks=False,
            onerror=on_walk_error
        ):
            current_path = Path(dirpath)
            dirnames.sort()
            filenames.sort()

            candidates: list[Path] = []
            descend: list[str] = []

            for dirname in dirnames:
                if self.rules.is_global_excluded(dirname):
                    logging.debug(f"Index - Pruned directory {current_path / dirname}")
                    continue

                dir_full_path = current_path / dirname
                if dir_full_path.is_symlink():
                    # Link to a directory: listed as an entry, not followed
                    candidates.append(dir_full_path)
                    continue

                descend.append(dirname)
                entry = self._match_directory(dir_full_path)
                if entry is not None:
                    files[entry.relative_path] = entry

            # Prune in place to control recursion
            dirnames[:] = descend

            candidates.extend(current_path / name for name in filenames)

            for full_path in candidates:
                entry = self._match_file(full_path)
                if entry is not None:
                    files[entry.relative_path] = entry

        logging.debug(f"Index - Indexed {len(files)} entries under {root}")
        return dict(sorted(files.items()))

    def _match_directory(self, path: Path) -> Optional[FileEntry]:
        """Directories are listed only when marked as ignore-content."""
        probe = strip_base_path(str(self.directory), str(path)) + '/'

        if self.rules.is_included(probe) or self.rules.is_skipped(probe):
            return None

        if not self.rules.is_ignore_content(probe):
            return None

        entry = FileEntry(path, self.directory)
        entry.set_ignore_content()
        return entry

    def _match_file(self, path: Path) -> Optional[FileEntry]:
        if path.is_symlink() and not path.exists():
            logging.warning(f"Index - Skipping broken symlink {path}")
            return None

        if self.rules.is_global_excluded(path.name):
            return None

        entry = FileEntry(path, self.directory)
        rel_path = entry.relative_path

        if self.rules.is_included(rel_path):
            return self._apply_content_callback(entry)

        if self.rules.is_skipped(rel_path):
            logging.debug(f"Index - Skipped {rel_path}")
            return None

        if self.rules.is_ignore_content(rel_path):
            entry.set_ignore_content()
            return entry

        return self._apply_content_callback(entry)

    def _apply_content_callback(self, entry: FileEntry) -> Optional[FileEntry]:
        if self.before_match_content is None:
            return entry

        if self.before_match_content(entry) is False:
            logging.debug(f"Index - Dropped {entry.relative_path} by content callback")
            return None

        return entry
