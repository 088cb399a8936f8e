"""
Folder comparison module.

Provides functionality for:
- Rule-based directory indexing
- Index-to-index comparison
- Tree synchronization
"""

from treepatch.core.folder.rules import (
    Rules,
    PatternMatcher,
    PatternKind,
)
from treepatch.core.folder.scanner import (
    Index,
)
from treepatch.core.folder.comparer import (
    Comparer,
    Differ,
    RenderOptions,
)
from treepatch.core.folder.sync import (
    Syncer,
    SyncResult,
)

__all__ = [
    # Rules
    'Rules',
    'PatternMatcher',
    'PatternKind',
    # Scanner
    'Index',
    # Comparer
    'Comparer',
    'Differ',
    'RenderOptions',
    # Sync
    'Syncer',
    'SyncResult',
]
