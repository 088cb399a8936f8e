"""
Core data models for tree indexing and comparison.

This module defines the structures shared by the scanner, the comparer,
the syncer and the patcher:
- File type and content state enumerations
- FileEntry, a single indexed filesystem node
- Path helpers for root-relative keys
"""

from __future__ import annotations

import os
import stat
from enum import Enum, auto
from pathlib import Path
from typing import Optional

from treepatch.core.exceptions import BasePathError
from treepatch.services.hashing import HashingService, get_hashing_service


# =============================================================================
# Enumerations
# =============================================================================

class FileType(Enum):
    """Type of filesystem entry."""
    FILE = auto()
    DIRECTORY = auto()
    SYMLINK = auto()
    UNKNOWN = auto()


class ContentState(Enum):
    """Content state of an indexed entry."""
    UNLOADED = auto()   # Not read yet
    LOADED = auto()     # Read from disk or overridden
    IGNORED = auto()    # Tracked for existence only


# =============================================================================
# Path helpers
# =============================================================================

def to_posix(path: str) -> str:
    """Normalize separators to '/'."""
    return path.replace(os.sep, '/') if os.sep != '/' else path


def strip_base_path(base_path: str, path: str) -> str:
    """
    Make a path relative to a base path.

    Raises:
        BasePathError: If path is not located under base_path
    """
    base = to_posix(str(base_path)).rstrip('/')
    full = to_posix(str(path))

    if full != base and not full.startswith(base + '/'):
        raise BasePathError(full, base)

    return full[len(base):].lstrip('/')


# =============================================================================
# File entry
# =============================================================================

class FileEntry:
    """
    One indexed filesystem node.

    Content is read lazily and cached together with its hash. Symlinks use
    their link target as content. Entries marked as ignore-content never
    load content and compare equal to any entry at the same path.
    """

    def __init__(
        self,
        path: Path | str,
        base_path: Path | str,
        content: Optional[bytes] = None,
        hashing: Optional[HashingService] = None
    ):
        self.path = Path(path)
        self.base_path = Path(str(base_path).rstrip('/\\') or '/')
        self.relative_path = strip_base_path(str(self.base_path), str(self.path))

        self._hashing = hashing or get_hashing_service()
        self._hash: Optional[str] = None
        self._content: Optional[bytes] = None
        self._state = ContentState.UNLOADED

        try:
            self._lstat = self.path.lstat()
        except OSError:
            self._lstat = None

        if content is not None:
            self.set_content(content)

    def __repr__(self) -> str:
        return f"FileEntry({self.relative_path!r}, {self.file_type.name}, {self._state.name})"

    @property
    def file_type(self) -> FileType:
        if self._lstat is None:
            return FileType.UNKNOWN
        if stat.S_ISLNK(self._lstat.st_mode):
            return FileType.SYMLINK
        if stat.S_ISDIR(self._lstat.st_mode):
            return FileType.DIRECTORY
        if stat.S_ISREG(self._lstat.st_mode):
            return FileType.FILE
        return FileType.UNKNOWN

    @property
    def is_link(self) -> bool:
        return self.file_type == FileType.SYMLINK

    @property
    def is_dir(self) -> bool:
        """True for directories and for symlinks pointing to directories."""
        return self.path.is_dir()

    @property
    def link_target(self) -> Optional[str]:
        if not self.is_link:
            return None
        return os.readlink(self.path)

    @property
    def basename(self) -> str:
        return self.path.name

    @property
    def relative_dir(self) -> str:
        """Root-relative path of the parent directory ('' at the root)."""
        return self.relative_path.rpartition('/')[0]

    @property
    def content_state(self) -> ContentState:
        return self._state

    @property
    def is_ignore_content(self) -> bool:
        return self._state == ContentState.IGNORED

    @property
    def content(self) -> bytes:
        """Entry content; empty for ignore-content entries."""
        if self._state == ContentState.IGNORED:
            return b''
        if self._state == ContentState.UNLOADED:
            self._content = self._load()
            self._state = ContentState.LOADED
        return self._content

    @property
    def hash(self) -> Optional[str]:
        """Content hash, or None for ignore-content entries."""
        if self._state == ContentState.IGNORED:
            return None
        if self._hash is None:
            self._hash = self._hashing.hash_bytes(self.content).hash_hex
        return self._hash

    def set_content(self, content: bytes) -> None:
        """Override the content, e.g. after a transform."""
        self._content = content
        self._state = ContentState.LOADED
        self._hash = None

    def set_ignore_content(self, ignore: bool = True) -> None:
        self._content = None
        self._hash = None
        self._state = ContentState.IGNORED if ignore else ContentState.UNLOADED

    def _load(self) -> bytes:
        if self.is_link:
            return os.fsencode(os.readlink(self.path))
        if self.is_dir:
            return b''
        with open(self.path, 'rb') as f:
            return f.read()
