"""
Observability & Audit Layer

RESPONSIBILITY: Audit logging of engine operations
ALLOWED INPUTS: AuditLogEntry records from any layer
OUTPUTS: Per-layer and unified audit logs, audit reports

WHAT THIS LAYER MUST NOT DO:
============================
- Modify system behavior
- Filter or interpret events (only record them)
- Block or delay other layer operations

BOUNDARY ENFORCEMENT:
=====================
- Receives immutable entries (never references to live state)
- Provides read-only access to collected logs
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import hashlib
import itertools

from ..contracts.base import Timestamp, TimeRange
from ..contracts.events import AuditLogEntry, AuditEventType


LAYERS: Tuple[str, ...] = ('history', 'storylets', 'story', 'storage')

_entry_counter = itertools.count(1)


# =============================================================================
# LOG COLLECTORS (One per layer)
# =============================================================================

class LogCollector:
    """
    Append-only audit collector for a single layer.

    Components hold a collector and call record(); the session's
    ObservabilityEngine owns one collector per layer.
    """

    def __init__(self, layer_name: str, enabled: bool = True):
        self._layer_name = layer_name
        self._enabled = enabled
        self._entries: List[AuditLogEntry] = []

    def record(
        self,
        action: str,
        event_type: AuditEventType = AuditEventType.SYSTEM,
        entity_id: Optional[str] = None,
        **metadata: object
    ) -> Optional[AuditLogEntry]:
        """Build and collect an entry. Returns None when auditing is disabled."""
        if not self._enabled:
            return None

        timestamp = Timestamp.now()
        seed = f"{self._layer_name}|{action}|{next(_entry_counter)}|{timestamp.to_iso()}"
        entry = AuditLogEntry(
            entry_id=f"audit_{hashlib.sha256(seed.encode()).hexdigest()[:16]}",
            event_type=event_type,
            timestamp=timestamp,
            layer=self._layer_name,
            action=action,
            entity_id=entity_id,
            metadata=tuple((key, str(value)) for key, value in metadata.items())
        )
        self._entries.append(entry)
        return entry

    def get_entries(
        self,
        time_range: Optional[TimeRange] = None,
        event_type: Optional[AuditEventType] = None,
        action: Optional[str] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries

        if time_range:
            entries = [e for e in entries if time_range.contains(e.timestamp)]

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]

        if action:
            entries = [e for e in entries if e.action == action]

        return list(entries)

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# OBSERVABILITY ENGINE (Orchestrates all collectors)
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_audit: bool = True


class ObservabilityEngine:
    """
    Central audit owner for one session.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Provides read-only access to collected data
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._collectors: Dict[str, LogCollector] = {
            layer: LogCollector(layer, enabled=self._config.enable_audit)
            for layer in LAYERS
        }

    def collector(self, layer_name: str) -> LogCollector:
        """Get the collector for a layer, creating it on first use."""
        if layer_name not in self._collectors:
            self._collectors[layer_name] = LogCollector(
                layer_name, enabled=self._config.enable_audit
            )
        return self._collectors[layer_name]

    def get_unified_log(
        self,
        time_range: Optional[TimeRange] = None,
        layers: Optional[List[str]] = None
    ) -> List[AuditLogEntry]:
        """Get unified log from all or specified layers, oldest first."""
        target_layers = layers or list(self._collectors.keys())

        all_entries = []
        for layer_name in target_layers:
            collector = self._collectors.get(layer_name)
            if collector:
                all_entries.extend(collector.get_entries(time_range=time_range))

        # Stable sort keeps per-layer order for identical timestamps
        all_entries.sort(key=lambda e: e.timestamp.value)

        return all_entries

    def get_layer_log(
        self,
        layer_name: str,
        time_range: Optional[TimeRange] = None
    ) -> List[AuditLogEntry]:
        """Get log for a specific layer."""
        collector = self._collectors.get(layer_name)
        if not collector:
            return []
        return collector.get_entries(time_range=time_range)

    def generate_audit_report(self, time_range: Optional[TimeRange] = None) -> Dict:
        """Summarize collected entries by layer and action."""
        entries = self.get_unified_log(time_range=time_range)

        by_layer: Dict[str, int] = {}
        by_action: Dict[str, int] = {}

        for entry in entries:
            by_layer[entry.layer] = by_layer.get(entry.layer, 0) + 1
            by_action[entry.action] = by_action.get(entry.action, 0) + 1

        return {
            'total_entries': len(entries),
            'by_layer': by_layer,
            'by_action': by_action,
            'time_range': {
                'start': entries[0].timestamp.to_iso() if entries else None,
                'end': entries[-1].timestamp.to_iso() if entries else None,
            },
            'generated_at': Timestamp.now().to_iso()
        }
