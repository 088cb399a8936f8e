"""
Diff module for tree patching.

Provides:
- Unified diff rendering for text content
- Per-path diff pairs
- A unified diff applier
"""

from treepatch.core.diff.text_diff import (
    Diff,
    TextDiffEngine,
    TextCompareOptions,
    split_lines,
)
from treepatch.core.diff.patcher import (
    Patcher,
    HunkInfo,
)

__all__ = [
    # Text diff
    'Diff',
    'TextDiffEngine',
    'TextCompareOptions',
    'split_lines',
    # Patching
    'Patcher',
    'HunkInfo',
]
