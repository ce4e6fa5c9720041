"""
Temporal Layer
==============

Snapshot-based narrative history.

INVARIANTS:
- Every transition stores an independent copy of the state
- Navigation replaces live state wholesale, never piecewise

Modules:
- history: HistoryLog with add/undo/redo and visitation queries
"""

from .history import HistoryLog
from ..contracts.events import HistoryEntry

__all__ = [
    'HistoryLog',
    'HistoryEntry',
]
