"""
Storylet Registry
=================

Content references gated by requirement query-documents and ranked by
priority.

RULES:
======
1. At most one entry per content reference
2. An empty requirement is never available, whatever the state
3. Availability is sorted by priority, highest first; ties keep
   registration order
4. Passages whose requirements block cannot be parsed are not storylets
   (recorded in the audit log, never raised)
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
import json

from ..contracts.base import ErrorCode, UsageError
from ..contracts.events import AuditEventType, StoryletEntry
from ..observability import LogCollector
from ..state.store import StateStore, copy_value
from ..story.passage import DEFAULT_REQUIREMENT_TAG, Passage, requirement_pattern
from .predicate import MongoQueryEvaluator, PredicateEvaluator


ContentLookup = Callable[[str], Optional[Passage]]


class MalformedRequirement(ValueError):
    """A requirements block that is present but unusable."""


def coerce_priority(value: Any) -> int:
    """Accept ints and integer strings; bools and floats are rejected."""
    if isinstance(value, bool):
        raise MalformedRequirement(f"Priority must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise MalformedRequirement(f"Priority must be an integer, got {value!r}")


def parse_requirement_block(
    source: str,
    tag: str = DEFAULT_REQUIREMENT_TAG
) -> Optional[Tuple[Dict[str, Any], int]]:
    """
    Extract (requirement, priority) from a passage source.

    Returns None when the passage has no block at all. Raises
    MalformedRequirement when the block exists but is not a JSON object
    or carries a bad priority.
    """
    match = requirement_pattern(tag).search(source)
    if match is None:
        return None

    try:
        document = json.loads(match.group(1))
    except json.JSONDecodeError as exc:
        raise MalformedRequirement(f"Requirements block is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise MalformedRequirement("Requirements block must be a JSON object")

    priority = coerce_priority(document.pop('priority', 0))
    return document, priority


class StoryletRegistry:
    """
    Registry of storylets for one session.

    The state store is the candidate object every requirement is tested
    against. `lookup` resolves content references for add_entry().
    """

    def __init__(
        self,
        state: StateStore,
        passages: Iterable[Passage] = (),
        evaluator: Optional[PredicateEvaluator] = None,
        lookup: Optional[ContentLookup] = None,
        requirement_tag: str = DEFAULT_REQUIREMENT_TAG,
        audit: Optional[LogCollector] = None
    ):
        self._state = state
        self._evaluator = evaluator or MongoQueryEvaluator()
        self._requirement_tag = requirement_tag
        self._audit = audit or LogCollector('storylets')
        self._entries: Dict[str, StoryletEntry] = {}

        passages = tuple(passages)
        if lookup is None:
            by_name: Dict[str, Passage] = {}
            for passage in passages:
                by_name.setdefault(passage.name, passage)
            lookup = by_name.get
        self._lookup = lookup

        for passage in passages:
            self._import_passage(passage)

    def _import_passage(self, passage: Passage) -> None:
        try:
            parsed = parse_requirement_block(passage.source, self._requirement_tag)
            if parsed is None:
                return
            requirement, priority = parsed
            self._evaluator.validate(requirement)
        except ValueError as exc:
            self._audit.record(
                "import_skipped",
                event_type=AuditEventType.REGISTRATION,
                entity_id=passage.name,
                outcome="malformed",
                details=str(exc),
            )
            return

        # Only the passage the lookup resolves the name to can be a storylet
        if passage.name in self._entries or self._lookup(passage.name) != passage:
            self._audit.record(
                "import_skipped",
                event_type=AuditEventType.REGISTRATION,
                entity_id=passage.name,
                outcome="duplicate",
            )
            return

        self._store(StoryletEntry(
            content_ref=passage.name,
            requirement=requirement,
            priority=priority,
        ), action="import")

    def _store(self, entry: StoryletEntry, action: str) -> StoryletEntry:
        self._entries[entry.content_ref] = entry
        self._audit.record(
            action,
            event_type=AuditEventType.REGISTRATION,
            entity_id=entry.content_ref,
            priority=entry.priority,
        )
        return entry

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def add_entry(
        self,
        content_ref: str,
        requirement: Optional[Mapping[str, Any]] = None,
        priority: int = 0
    ) -> StoryletEntry:
        """
        Register a storylet.

        Raises UsageError for unknown content, a duplicate reference, or an
        invalid requirement/priority.
        """
        if self._lookup(content_ref) is None:
            raise UsageError.create(
                ErrorCode.UNKNOWN_CONTENT,
                f"There is no passage named {content_ref!r}",
                content_ref=content_ref,
            )
        if content_ref in self._entries:
            raise UsageError.create(
                ErrorCode.DUPLICATE_STORYLET,
                f"Storylet {content_ref!r} is already registered",
                content_ref=content_ref,
            )

        requirement = {} if requirement is None else requirement
        try:
            self._evaluator.validate(requirement)
            priority = coerce_priority(priority)
        except ValueError as exc:
            raise UsageError.create(
                ErrorCode.MALFORMED_REQUIREMENT,
                str(exc),
                content_ref=content_ref,
            ) from exc

        return self._store(StoryletEntry(
            content_ref=content_ref,
            requirement=copy_value(requirement),
            priority=priority,
        ), action="add")

    def remove_entry(self, content_ref: str) -> None:
        """Remove a storylet; absent references are ignored."""
        if self._entries.pop(content_ref, None) is not None:
            self._audit.record(
                "remove",
                event_type=AuditEventType.REGISTRATION,
                entity_id=content_ref,
            )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def includes(self, content_ref: str) -> bool:
        return content_ref in self._entries

    __contains__ = includes

    def get_entry(self, content_ref: str) -> Optional[StoryletEntry]:
        return self._entries.get(content_ref)

    @property
    def entries(self) -> Tuple[StoryletEntry, ...]:
        return tuple(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def get_available(self, limit: int = 0) -> List[str]:
        """
        Content references whose requirement matches the current state.

        Highest priority first; limit > 0 keeps only the first `limit`.
        """
        matching = [
            entry for entry in self._entries.values()
            if entry.has_requirement
            and self._evaluator.test(entry.requirement, self._state)
        ]
        matching.sort(key=lambda entry: entry.priority, reverse=True)

        if limit > 0:
            matching = matching[:limit]

        return [entry.content_ref for entry in matching]
