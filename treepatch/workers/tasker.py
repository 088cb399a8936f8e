"""
Batched per-file task runner.

Transforms are registered under a batch name and applied, in order, to
every file of a directory. Only files whose content changed are written
back. A batch is cleared after it runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from treepatch.core.folder.scanner import Index
from treepatch.core.models import FileEntry
from treepatch.services.file_io import FileIOService

Transform = Callable[[FileEntry], FileEntry]

DEFAULT_BATCH = 'directory'

# Not processed by directory tasks
IMAGE_EXTENSIONS = frozenset({'.png', '.jpg', '.jpeg', '.bmp', '.tiff'})


@dataclass
class ProgressInfo:
    """Progress information from a task run."""
    current: int
    total: int
    message: str = ""

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.current / self.total) * 100


@dataclass
class TaskResult:
    """Result of running a batch."""
    batch: str
    files_processed: int = 0
    files_changed: list[str] = field(default_factory=list)


class Tasker:
    """
    Registry of named transform batches.

    Usage::

        def strip_trailing_spaces(entry):
            entry.set_content(entry.content.replace(b' \n', b'\n'))
            return entry

        tasker = Tasker()
        tasker.add_task(strip_trailing_spaces)
        tasker.run_directory('project')
    """

    def __init__(self, file_io: Optional[FileIOService] = None):
        self.file_io = file_io or FileIOService()
        self._queues: dict[str, list[Transform]] = {}

    def add_task(self, callback: Transform, batch: str = DEFAULT_BATCH) -> 'Tasker':
        self._queues.setdefault(batch, []).append(callback)
        return self

    def tasks(self, batch: str = DEFAULT_BATCH) -> list[Transform]:
        return list(self._queues.get(batch, []))

    def clear(self, batch: Optional[str] = None) -> 'Tasker':
        """Clear one batch, or all batches when no name is given."""
        if batch is None:
            self._queues.clear()
        else:
            self._queues.pop(batch, None)
        return self

    def run_directory(
        self,
        directory: Path | str,
        batch: str = DEFAULT_BATCH,
        progress_callback: Optional[Callable[[ProgressInfo], None]] = None
    ) -> TaskResult:
        """
        Apply a batch to every regular file under a directory.

        Args:
            directory: Root directory
            batch: Batch name
            progress_callback: Called after each file

        Returns:
            TaskResult listing the changed files

        Raises:
            TypeError: If a transform does not return a FileEntry
        """
        result = TaskResult(batch=batch)
        tasks = self._queues.get(batch)

        if not tasks:
            return result

        entries = [
            entry for entry in Index(directory)
            if not entry.is_link and not entry.is_dir and not entry.is_ignore_content
            and Path(entry.basename).suffix.lower() not in IMAGE_EXTENSIONS
        ]

        for i, entry in enumerate(entries, 1):
            original = entry.content
            processed = entry

            for task in tasks:
                processed = task(processed)
                if not isinstance(processed, FileEntry):
                    logging.error(f"Tasker - Task returned {type(processed).__name__} for {entry.relative_path}")
                    raise TypeError(
                        f"Task callback must return a FileEntry, {type(processed).__name__} returned"
                    )

            if processed.content != original:
                self.file_io.write_bytes(processed.path, processed.content)
                result.files_changed.append(processed.relative_path)

            result.files_processed += 1

            if progress_callback:
                progress_callback(ProgressInfo(i, len(entries), entry.relative_path))

        logging.info(
            f"Tasker - Batch '{batch}': processed {result.files_processed}, "
            f"changed {len(result.files_changed)} file(s)"
        )
        self.clear(batch)
        return result
