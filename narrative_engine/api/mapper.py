"""
API Mapper
==========

Turns session objects into JSON-ready dicts. Values pass through the
StateEncoder rules so sets, dates and enums serialize the same way they
do in saved games.
"""
import json
from typing import Any, Dict, Optional

from ..domain.serialization import StateEncoder
from ..engine import StorySession
from ..temporal.history import HistoryLog


def _plain(value: Any) -> Any:
    return json.loads(json.dumps(value, cls=StateEncoder))


def map_state(session: StorySession) -> Dict[str, Any]:
    return _plain(session.describe())


def map_history(history: HistoryLog) -> Dict[str, Any]:
    return {
        "cursor": history.cursor,
        "entries": [
            {
                "position": position,
                "content_id": entry.content_id,
                "snapshot": _plain(entry.snapshot),
            }
            for position, entry in enumerate(history.entries)
        ],
    }


def map_navigation(
    session: StorySession,
    content_id: Optional[str],
    text: Optional[str] = None
) -> Dict[str, Any]:
    """Result of navigate/undo/redo; content_id is None at a history boundary."""
    if content_id is not None and text is None:
        text = session.render(content_id)
    return {
        "content_id": content_id,
        "text": text,
        "cursor": session.history.cursor,
        "state": _plain(session.state.snapshot()),
    }
