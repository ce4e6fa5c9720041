"""
Synchronous event emitter shared by the state store and the session.
"""

from __future__ import annotations
from typing import Callable, Dict, List


Listener = Callable[..., None]


class EventEmitter:
    """
    Named-event observer registry.

    Listeners run synchronously in registration order. A listener that
    raises stops delivery and the exception reaches the emitting caller.
    """

    def __init__(self, *event_names: str):
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in event_names}

    def on(self, event: str, listener: Listener) -> Listener:
        """Register a listener; returns it so it can be used as a decorator."""
        self._known(event).append(listener)
        return listener

    def off(self, event: str, listener: Listener) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        listeners = self._known(event)
        if listener in listeners:
            listeners.remove(listener)
            return True
        return False

    def emit(self, event: str, *args) -> None:
        # Copy so a listener may unsubscribe itself mid-delivery
        for listener in list(self._known(event)):
            listener(*args)

    def _known(self, event: str) -> List[Listener]:
        if event not in self._listeners:
            raise ValueError(
                f"Unknown event {event!r}; expected one of {sorted(self._listeners)}"
            )
        return self._listeners[event]
