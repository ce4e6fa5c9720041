"""
State Layer

Reactive key/value store for story variables.

Modules:
- store: StateStore, the observable mapping, and copy_value
- emitter: synchronous named-event observers
"""

from .emitter import EventEmitter
from .store import StateStore, copy_value, CHANGE, DELETION

__all__ = [
    'EventEmitter',
    'StateStore',
    'copy_value',
    'CHANGE',
    'DELETION',
]
