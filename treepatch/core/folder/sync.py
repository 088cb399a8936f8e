"""
Tree synchronization.

Materializes every entry of an index into a destination directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from treepatch.core.folder.scanner import Index
from treepatch.services.file_io import FileIOService


@dataclass
class SyncResult:
    """Result of a sync operation."""
    files_written: int = 0
    paths_copied: int = 0
    bytes_written: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


class Syncer:
    """
    Copies the entries of a source index into a destination tree.

    Directories and symlinks are copied from disk, with symlinks recreated
    using the same target. Regular files are written from the entry's
    in-memory content, so content overrides are preserved. Ignore-content
    files are copied from disk unchanged.
    """

    def __init__(self, src_index: Index, file_io: Optional[FileIOService] = None):
        self.src_index = src_index
        self.file_io = file_io or FileIOService()
        self.result = SyncResult()

    def sync(
        self,
        dst: Path | str,
        permissions: int = 0o755,
        copy_empty_dirs: bool = False
    ) -> 'Syncer':
        dst = Path(dst)
        self.file_io.mkdir(dst, permissions)

        for entry in self.src_index:
            dest_path = dst / entry.relative_path

            if entry.is_link or entry.is_dir or entry.is_ignore_content:
                if self.file_io.copy_path(entry.path, dest_path, permissions, copy_empty_dirs):
                    self.result.paths_copied += 1
                else:
                    self.result.errors.append((entry.relative_path, "Could not copy"))
                continue

            self.result.bytes_written += self.file_io.write_bytes(dest_path, entry.content)
            self.result.files_written += 1

        logging.info(
            f"Syncer - Synced {self.src_index.directory} to {dst}: "
            f"{self.result.files_written} written, {self.result.paths_copied} copied"
        )
        return self
