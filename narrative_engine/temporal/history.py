"""
History Log
===========

Ordered (content id, state snapshot) entries with a navigation cursor.

INVARIANTS:
- Entries are never modified once written
- add() always appends at the tail and moves the cursor there, even after
  undo(); entries that were ahead of the cursor stay in the log but are no
  longer reachable through redo()
- 0 <= cursor < len(entries) whenever the log is non-empty
- After add/undo/redo the entry at the cursor matches the live store

undo()/redo() at a boundary return None and touch nothing.
"""

from __future__ import annotations
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..contracts.base import ErrorCode, UsageError
from ..contracts.events import AuditEventType, HistoryEntry
from ..observability import LogCollector
from ..state.store import StateStore, copy_value


class HistoryLog:
    """
    Reversible timeline of narrative transitions bound to state snapshots.

    The log owns its entries; the state store is shared with the session
    and is overwritten on every undo/redo.
    """

    def __init__(self, state: StateStore, audit: Optional[LogCollector] = None):
        self._state = state
        self._entries: List[HistoryEntry] = []
        self._cursor = 0
        self._audit = audit or LogCollector('history')

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Optional[HistoryEntry]:
        """Entry at the cursor, or None for an empty log."""
        if not self._entries:
            return None
        return self._entries[self._cursor]

    @property
    def can_undo(self) -> bool:
        return self._cursor >= 1

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def add(self, content_id: str) -> HistoryEntry:
        """Snapshot the live store under content_id and move to the new tail."""
        entry = HistoryEntry(content_id=content_id, snapshot=self._state.snapshot())
        self._entries.append(entry)
        self._cursor = len(self._entries) - 1

        self._audit.record(
            "add",
            event_type=AuditEventType.NAVIGATION,
            entity_id=content_id,
            cursor=self._cursor,
        )
        return entry

    def undo(self) -> Optional[str]:
        """Step back one entry. Returns its content id, or None at the start."""
        if not self.can_undo:
            return None
        return self._move_to(self._cursor - 1, "undo")

    def redo(self) -> Optional[str]:
        """Step forward one entry. Returns its content id, or None at the end."""
        if not self.can_redo:
            return None
        return self._move_to(self._cursor + 1, "redo")

    def _move_to(self, position: int, action: str) -> str:
        entry = self._entries[position]
        self._state.restore(entry.snapshot)
        self._cursor = position

        self._audit.record(
            action,
            event_type=AuditEventType.NAVIGATION,
            entity_id=entry.content_id,
            cursor=position,
        )
        return entry.content_id

    def reset(self) -> None:
        self._entries = []
        self._cursor = 0
        self._audit.record("reset", event_type=AuditEventType.STATE_CHANGE)

    # -------------------------------------------------------------------------
    # Visitation queries
    # -------------------------------------------------------------------------

    def has_visited(self, content_ids: Union[str, Iterable[str]]) -> bool:
        """
        True if the content was visited.

        For an iterable, every id must have been visited at least once.
        """
        if isinstance(content_ids, str):
            return any(entry.content_id == content_ids for entry in self._entries)

        seen = {entry.content_id for entry in self._entries}
        return all(content_id in seen for content_id in content_ids)

    def visited(self, content_id: str) -> int:
        """Number of entries recorded for content_id."""
        return sum(1 for entry in self._entries if entry.content_id == content_id)

    # -------------------------------------------------------------------------
    # Persistence hooks
    # -------------------------------------------------------------------------

    def load(
        self,
        entries: Sequence[Union[HistoryEntry, Tuple[str, Mapping[str, Any]]]],
        cursor: Optional[int] = None
    ) -> None:
        """
        Replace the whole log and restore the store from the cursor entry.

        cursor defaults to the last entry. Nothing changes if validation fails.
        """
        loaded = [
            entry if isinstance(entry, HistoryEntry)
            else HistoryEntry(content_id=entry[0], snapshot=copy_value(entry[1]))
            for entry in entries
        ]

        if not loaded:
            if cursor not in (None, 0):
                raise UsageError.create(
                    ErrorCode.INVALID_CURSOR,
                    f"Cursor {cursor} is out of range for an empty history",
                    cursor=cursor,
                )
            self._entries = []
            self._cursor = 0
            self._state.reset()
            self._audit.record("load", event_type=AuditEventType.PERSISTENCE, entries=0)
            return

        position = len(loaded) - 1 if cursor is None else cursor
        if not 0 <= position < len(loaded):
            raise UsageError.create(
                ErrorCode.INVALID_CURSOR,
                f"Cursor {position} is out of range for {len(loaded)} entries",
                cursor=position,
                entries=len(loaded),
            )

        self._state.restore(loaded[position].snapshot)
        self._entries = loaded
        self._cursor = position

        self._audit.record(
            "load",
            event_type=AuditEventType.PERSISTENCE,
            entity_id=loaded[position].content_id,
            entries=len(loaded),
            cursor=position,
        )
