"""
File I/O service for reading, writing and copying tree content.

Handles:
- Binary detection
- Encoding detection
- Recursive copy with symlink recreation
- Removal of files, links and directory trees
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import chardet

if TYPE_CHECKING:
    from treepatch.core.models import FileEntry


class FileIOService:
    """Service for filesystem operations used by indexing, syncing and patching."""

    # Binary file signatures (magic bytes)
    BINARY_SIGNATURES = [
        b'\x89PNG',        # PNG
        b'\xff\xd8\xff',   # JPEG
        b'GIF8',           # GIF
        b'PK\x03\x04',     # ZIP
        b'\x1f\x8b',       # GZIP
        b'%PDF',           # PDF
        b'\x7fELF',        # ELF
    ]

    def __init__(
        self,
        default_encoding: str = 'utf-8',
        binary_check_size: int = 8192,
        min_confidence: float = 0.7
    ):
        self.default_encoding = default_encoding
        self.binary_check_size = binary_check_size
        self.min_confidence = min_confidence

    def read_bytes(self, path: Path | str) -> bytes:
        """Read the whole file."""
        with open(path, 'rb') as f:
            return f.read()

    def write_bytes(self, path: Path | str, data: bytes) -> int:
        """Write data to a file, creating parent directories as needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)
        return len(data)

    def contains(self, path: Path | str, needle: str) -> bool:
        """Check if a regular file contains a literal string."""
        path = Path(path)
        if not path.is_file():
            return False
        return needle.encode('utf-8') in self.read_bytes(path)

    def is_binary(self, data: bytes) -> bool:
        """Check if content looks binary."""
        chunk = data[:self.binary_check_size]

        for sig in self.BINARY_SIGNATURES:
            if chunk.startswith(sig):
                return True

        if b'\x00' in chunk:
            return True

        # Check ratio of non-text bytes
        non_text = sum(1 for b in chunk if b < 9 or (13 < b < 32))
        if len(chunk) > 0 and non_text / len(chunk) > 0.3:
            return True

        return False

    def detect_encoding(self, data: bytes) -> str:
        """Detect encoding of content."""
        if not data:
            return self.default_encoding

        try:
            data.decode(self.default_encoding)
            return self.default_encoding
        except UnicodeDecodeError:
            pass

        result = chardet.detect(data)

        if result['confidence'] > self.min_confidence and result['encoding']:
            encoding = result['encoding'].lower()
            # ASCII is subset of UTF-8
            if encoding == 'ascii':
                return 'utf-8'
            return encoding

        return self.default_encoding

    def decode(self, data: bytes, encoding: Optional[str] = None) -> tuple[str, str]:
        """Decode content, returning the text and the encoding used."""
        encoding = encoding or self.detect_encoding(data)
        return data.decode(encoding, errors='surrogateescape'), encoding

    def encode(self, text: str, encoding: Optional[str] = None) -> bytes:
        """Encode text produced by decode()."""
        return text.encode(encoding or self.default_encoding, errors='surrogateescape')

    def mkdir(self, path: Path | str, permissions: int = 0o755) -> Path:
        """Create a directory and its parents."""
        path = Path(path)
        if not path.is_dir():
            path.mkdir(mode=permissions, parents=True, exist_ok=True)
        return path

    def copy_path(
        self,
        source: Path | str,
        dest: Path | str,
        permissions: int = 0o755,
        copy_empty_dirs: bool = False
    ) -> bool:
        """
        Copy a file, symlink or directory.

        Symlinks are recreated with the same target, so relative targets
        resolve against the destination's parent directory. Directories are
        copied recursively; empty directories are created only when
        copy_empty_dirs is set for the top-level call.

        Returns:
            True if the copy succeeded
        """
        source = Path(source)
        dest = Path(dest)
        self.mkdir(dest.parent, permissions)

        if source.is_symlink():
            if not os.path.lexists(dest):
                try:
                    os.symlink(os.readlink(source), dest)
                except OSError as e:
                    logging.warning(f"FileIOService - Could not link {dest}: {e}")
                    return False
            return True

        if source.is_file():
            shutil.copy2(source, dest)
            return True

        if copy_empty_dirs:
            self.mkdir(dest, permissions)

        for child in sorted(source.iterdir()):
            self.copy_path(child, dest / child.name, permissions, False)

        return True

    def remove_path(self, path: Path | str) -> None:
        """Remove a file, symlink or directory tree if it exists."""
        path = Path(path)
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)


def skip_binary(entry: 'FileEntry') -> bool:
    """Content callback that drops binary files from an index."""
    if entry.is_link or entry.is_dir:
        return True
    return not FileIOService().is_binary(entry.content)
