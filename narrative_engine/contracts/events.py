"""
Layer-Specific Contracts

Immutable records that cross layer boundaries: history entries,
storylet entries and audit records.

Each type is a frozen dataclass. Snapshots held by history entries are
exposed through read-only mapping views so a caller cannot edit history
through them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple
from enum import Enum

from .base import Timestamp


# =============================================================================
# HISTORY CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class HistoryEntry:
    """
    One point in narrative history.

    INVARIANTS:
    - Once created, never modified
    - snapshot is a private deep copy, never shared with the live store
    """
    content_id: str
    snapshot: Mapping[str, Any]

    def __post_init__(self):
        if not isinstance(self.snapshot, MappingProxyType):
            object.__setattr__(self, 'snapshot', MappingProxyType(dict(self.snapshot)))


# =============================================================================
# STORYLET CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class StoryletEntry:
    """
    A content reference gated by a requirement query-document.

    An empty requirement is legal to register but never available.
    """
    content_ref: str
    requirement: Mapping[str, Any]
    priority: int = 0

    def __post_init__(self):
        if not isinstance(self.requirement, MappingProxyType):
            object.__setattr__(self, 'requirement', MappingProxyType(dict(self.requirement)))

    def __hash__(self) -> int:
        return hash((self.content_ref, self.priority))

    @property
    def has_requirement(self) -> bool:
        return len(self.requirement) > 0


# =============================================================================
# OBSERVABILITY CONTRACTS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    STATE_CHANGE = "state_change"
    NAVIGATION = "navigation"
    REGISTRATION = "registration"
    PERSISTENCE = "persistence"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def get(self, key: str) -> Optional[str]:
        """Look up a metadata value by key."""
        for meta_key, value in self.metadata:
            if meta_key == key:
                return value
        return None
