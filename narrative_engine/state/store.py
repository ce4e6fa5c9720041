"""
Reactive State Store
====================

Session-scoped story variables with observable mutation.

INVARIANTS:
- Keys are unique strings; values are unconstrained
- Every mutation goes through set()/delete() (item syntax included)
- snapshot() never aliases a nested mutable value with the live store
- restore() is all-or-nothing: copy first, then swap
"""

from __future__ import annotations
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, Iterator, Optional
import copy

from .emitter import EventEmitter, Listener


CHANGE = "change"
DELETION = "deletion"

_MISSING = object()


def copy_value(value: Any) -> Any:
    """
    Recursive value copy used for snapshots.

    Containers are rebuilt element by element; scalars are immutable and
    returned as-is. Anything else falls back to copy.deepcopy.
    """
    if value is None or isinstance(value, (str, int, float, bool, bytes)):
        return value
    if isinstance(value, Mapping):
        return {key: copy_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(copy_value(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return type(value)(copy_value(item) for item in value)
    return copy.deepcopy(value)


def _same_value(previous: Any, value: Any) -> bool:
    if previous is value:
        return True
    # 1 == True in Python; a type change still counts as a change
    if type(previous) is not type(value):
        return False
    try:
        return bool(previous == value)
    except (TypeError, ValueError):
        # Values without a usable equality (e.g. arrays) always count as changed
        return False


def _check_key(key: Any) -> None:
    if not isinstance(key, str):
        raise TypeError(f"State keys must be strings, got {key!r}")


class StateStore(MutableMapping):
    """
    Mutation-observable mapping of story variables.

    EVENTS:
    - change(key, value): key assigned a new value
    - deletion(key): key removed
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        self._events = EventEmitter(CHANGE, DELETION)
        if initial:
            self._data = self._copy_snapshot(initial)

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> Listener:
        return self._events.on(event, listener)

    def off(self, event: str, listener: Listener) -> bool:
        return self._events.off(event, listener)

    # -------------------------------------------------------------------------
    # Reads and writes
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Assign a variable. Keys must be strings, as restore() requires."""
        _check_key(key)
        previous = self._data.get(key, _MISSING)
        self._data[key] = value
        if previous is _MISSING or not _same_value(previous, value):
            self._events.emit(CHANGE, key, value)

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        self._events.emit(DELETION, key)
        return True

    def reset(self) -> None:
        """Drop every variable. Not observed per key."""
        self._data = {}

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return copy_value(self._data)

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        self._data = self._copy_snapshot(snapshot)

    @staticmethod
    def _copy_snapshot(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
        if not isinstance(snapshot, Mapping):
            raise TypeError(
                f"State snapshot must be a mapping, got {type(snapshot).__name__}"
            )
        for key in snapshot:
            _check_key(key)
        return copy_value(snapshot)

    # -------------------------------------------------------------------------
    # Mapping protocol
    # -------------------------------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if not self.delete(key):
            raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"StateStore({self._data!r})"
