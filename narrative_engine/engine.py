"""
Engine Orchestration Module

One StorySession per story run. The session owns the state store, the
history log and the storylet registry, and wires them to the story
content, a renderer and a persistence adapter.

DESIGN PRINCIPLES:
==================
1. No module-level singletons; every run gets its own session
2. The session orchestrates flow; each component stays usable alone
3. All navigation is traceable through the audit log
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from .contracts.base import ErrorCode, UsageError
from .contracts.events import AuditEventType
from .domain.serialization import decode_history, encode_history
from .observability import ObservabilityConfig, ObservabilityEngine
from .state.emitter import EventEmitter, Listener
from .state.store import StateStore
from .storage import PersistenceAdapter, StorageConfig, create_persistence
from .story.passage import DEFAULT_REQUIREMENT_TAG, Passage, Story
from .story.render import PlainRenderer, Renderer
from .storylets.predicate import PredicateEvaluator
from .storylets.registry import StoryletRegistry
from .temporal.history import HistoryLog


NAVIGATION = "navigation"
UNDO = "undo"
REDO = "redo"


@dataclass
class RegistryConfig:
    """Configuration for storylet import."""
    requirement_tag: str = DEFAULT_REQUIREMENT_TAG


@dataclass
class EngineConfig:
    """Unified configuration for a session."""
    storage: StorageConfig = None
    registry: RegistryConfig = None
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.storage = self.storage or StorageConfig()
        self.registry = self.registry or RegistryConfig()
        self.observability = self.observability or ObservabilityConfig()


class StorySession:
    """
    A single reader's run through a story.

    FLOW:
    =====
    1. Scripted logic mutates `state`
    2. show(name) records the resulting state in `history`
    3. get_available() asks `storylets` what may come next
    4. undo()/redo() swap the live state for a recorded snapshot
    """

    def __init__(
        self,
        story: Story,
        config: Optional[EngineConfig] = None,
        evaluator: Optional[PredicateEvaluator] = None,
        renderer: Optional[Renderer] = None,
        persistence: Optional[PersistenceAdapter] = None
    ):
        self._config = config or EngineConfig()
        self._story = story
        self._observability = ObservabilityEngine(self._config.observability)

        self._state = StateStore()
        self._history = HistoryLog(
            self._state,
            audit=self._observability.collector('history'),
        )
        self._storylets = StoryletRegistry(
            self._state,
            passages=story.passages,
            evaluator=evaluator,
            lookup=story.get_passage_by_name,
            requirement_tag=self._config.registry.requirement_tag,
            audit=self._observability.collector('storylets'),
        )
        self._renderer = renderer or PlainRenderer(self._config.registry.requirement_tag)
        self._persistence = persistence or create_persistence(
            self._config.storage,
            audit=self._observability.collector('storage'),
        )
        self._events = EventEmitter(NAVIGATION, UNDO, REDO)
        self._current: Optional[Passage] = None

    # =========================================================================
    # COMPONENTS (read-only access)
    # =========================================================================

    @property
    def story(self) -> Story:
        return self._story

    @property
    def state(self) -> StateStore:
        return self._state

    @property
    def history(self) -> HistoryLog:
        return self._history

    @property
    def storylets(self) -> StoryletRegistry:
        return self._storylets

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    @property
    def current_passage(self) -> Optional[Passage]:
        return self._current

    def on(self, event: str, listener: Listener) -> Listener:
        """Subscribe to navigation, undo or redo."""
        return self._events.on(event, listener)

    def off(self, event: str, listener: Listener) -> bool:
        return self._events.off(event, listener)

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def start(self) -> str:
        """Show the story's start passage."""
        passage = self._story.get_passage_by_id(self._story.start_passage)
        if passage is None:
            raise UsageError.create(
                ErrorCode.START_PASSAGE_MISSING,
                "Starting passage pid does not exist",
                pid=self._story.start_passage,
            )
        return self.show(passage.name)

    def show(self, name: str) -> str:
        """Navigate to a passage: record it in history and render it."""
        passage = self._require_passage(name)

        self._events.emit(NAVIGATION, name)
        self._history.add(name)
        self._current = passage

        self._observability.collector('story').record(
            "show",
            event_type=AuditEventType.NAVIGATION,
            entity_id=name,
        )
        return self._renderer.render(passage)

    def render(self, name: str) -> str:
        """Render a passage without navigating to it."""
        return self._renderer.render(self._require_passage(name))

    def undo(self) -> Optional[str]:
        content_id = self._history.undo()
        if content_id is not None:
            self._current = self._story.get_passage_by_name(content_id)
            self._events.emit(UNDO, content_id)
        return content_id

    def redo(self) -> Optional[str]:
        content_id = self._history.redo()
        if content_id is not None:
            self._current = self._story.get_passage_by_name(content_id)
            self._events.emit(REDO, content_id)
        return content_id

    def get_available(self, limit: int = 0) -> List[str]:
        return self._storylets.get_available(limit)

    def _require_passage(self, name: str) -> Passage:
        passage = self._story.get_passage_by_name(name)
        if passage is None:
            raise UsageError.create(
                ErrorCode.UNKNOWN_CONTENT,
                f"There is no passage with the name {name}",
                name=name,
            )
        return passage

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def save(self) -> bool:
        blob = encode_history(list(self._history.entries), self._history.cursor)
        saved = self._persistence.save(blob)
        self._observability.collector('storage').record(
            "save",
            event_type=AuditEventType.PERSISTENCE,
            outcome="success" if saved else "failure",
            entries=len(self._history),
        )
        return saved

    def load(self) -> bool:
        """
        Replace history and state with the saved game.

        Returns False when nothing is saved. A malformed save raises
        UsageError and leaves the session untouched.
        """
        blob = self._persistence.load()
        if blob is None:
            return False

        entries, cursor = decode_history(blob)
        self._history.load(entries, cursor)
        current = self._history.current
        self._current = (
            self._story.get_passage_by_name(current.content_id) if current else None
        )

        self._observability.collector('storage').record(
            "load",
            event_type=AuditEventType.PERSISTENCE,
            entries=len(entries),
            cursor=self._history.cursor,
        )
        return True

    def has_save(self) -> bool:
        return self._persistence.exists()

    def clear_save(self) -> bool:
        return self._persistence.clear()

    # =========================================================================
    # INSPECTION
    # =========================================================================

    def describe(self) -> dict:
        """Plain-data summary of the session, used by the API."""
        return {
            "story": self._story.name,
            "current_passage": self._current.name if self._current else None,
            "cursor": self._history.cursor,
            "history_length": len(self._history),
            "can_undo": self._history.can_undo,
            "can_redo": self._history.can_redo,
            "state": self._state.snapshot(),
        }

    def reset(self) -> None:
        """Forget state and history; the story and registry are kept."""
        self._state.reset()
        self._history.reset()
        self._current = None
