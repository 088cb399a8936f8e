"""
Batch workers for per-file transforms.
"""

from treepatch.workers.tasker import (
    Tasker,
    TaskResult,
    ProgressInfo,
)

__all__ = [
    'Tasker',
    'TaskResult',
    'ProgressInfo',
]
