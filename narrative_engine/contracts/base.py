"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for engine usage errors.
    Boundary no-ops (undo/redo at either end) are NOT errors and have no code.
    """
    # Content errors
    UNKNOWN_CONTENT = auto()
    START_PASSAGE_MISSING = auto()
    MALFORMED_STORY_DATA = auto()

    # Storylet errors
    DUPLICATE_STORYLET = auto()
    MALFORMED_REQUIREMENT = auto()

    # History errors
    INVALID_CURSOR = auto()
    MALFORMED_HISTORY = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data; UsageError wraps one when it must be raised.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


class UsageError(Exception):
    """
    Raised synchronously for caller mistakes.

    Never caught inside the engine. The wrapped Error keeps the code and
    context queryable after the fact.
    """

    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @staticmethod
    def create(code: ErrorCode, message: str, **context: str) -> UsageError:
        return UsageError(Error(
            code=code,
            message=message,
            timestamp=Timestamp.now().value,
            context=tuple((key, str(value)) for key, value in context.items())
        ))


# =============================================================================
# TEMPORAL TYPES (Immutable, explicit semantics)
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp with explicit semantics.
    All timestamps are UTC, never local time.
    """
    value: datetime

    def __post_init__(self):
        # Ensure UTC timezone
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    @staticmethod
    def from_iso(iso_string: str) -> Timestamp:
        dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return Timestamp(value=dt)

    def to_iso(self) -> str:
        return self.value.isoformat()


@dataclass(frozen=True)
class TimeRange:
    """Immutable time range for audit queries."""
    start: Timestamp
    end: Timestamp

    def __post_init__(self):
        if self.start.value > self.end.value:
            raise ValueError("TimeRange start must be before or equal to end")

    def contains(self, timestamp: Timestamp) -> bool:
        return self.start.value <= timestamp.value <= self.end.value
