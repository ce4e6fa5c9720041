"""
Contracts Module

This module defines the explicit data types and errors shared by all
layers of the engine. No layer may import implementation details from
another layer's internals when a contract type exists here.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Usage errors carry an explicit ErrorCode
3. All timestamps use UTC and are never mutated
"""

from .base import Error, ErrorCode, UsageError, Timestamp, TimeRange
from .events import HistoryEntry, StoryletEntry, AuditEventType, AuditLogEntry

__all__ = [
    'Error',
    'ErrorCode',
    'UsageError',
    'Timestamp',
    'TimeRange',
    'HistoryEntry',
    'StoryletEntry',
    'AuditEventType',
    'AuditLogEntry',
]
