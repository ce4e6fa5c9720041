"""
Audit Layer Tests
=================

Per-layer collectors, filtering and the unified session log.
"""

from datetime import timedelta

import pytest

from narrative_engine.contracts.base import ErrorCode, TimeRange, Timestamp, UsageError
from narrative_engine.contracts.events import AuditEventType
from narrative_engine.observability import (
    LogCollector, ObservabilityConfig, ObservabilityEngine,
)


class TestLogCollector:

    def test_record_builds_entry(self):
        collector = LogCollector('history')

        entry = collector.record(
            "add", event_type=AuditEventType.NAVIGATION, entity_id="intro", cursor=0
        )

        assert entry.layer == 'history'
        assert entry.entity_id == "intro"
        assert entry.get("cursor") == "0"
        assert entry.get("missing") is None
        assert entry.entry_id.startswith("audit_")
        assert collector.entry_count == 1

    def test_entry_ids_are_unique(self):
        collector = LogCollector('story')
        first = collector.record("show")
        second = collector.record("show")
        assert first.entry_id != second.entry_id

    def test_disabled_collector_records_nothing(self):
        collector = LogCollector('story', enabled=False)
        assert collector.record("show") is None
        assert collector.get_entries() == []

    def test_filters(self):
        collector = LogCollector('storylets')
        collector.record("import", event_type=AuditEventType.REGISTRATION)
        collector.record("import_skipped", event_type=AuditEventType.REGISTRATION)
        collector.record("boot")

        assert len(collector.get_entries(event_type=AuditEventType.REGISTRATION)) == 2
        assert [e.action for e in collector.get_entries(action="boot")] == ["boot"]

    def test_time_range_filter(self):
        collector = LogCollector('storage')
        entry = collector.record("save")

        around = TimeRange(
            start=Timestamp(entry.timestamp.value - timedelta(seconds=1)),
            end=Timestamp(entry.timestamp.value + timedelta(seconds=1)),
        )
        before = TimeRange(
            start=Timestamp.from_iso("2000-01-01T00:00:00Z"),
            end=Timestamp.from_iso("2000-01-02T00:00:00"),
        )

        assert collector.get_entries(time_range=around) == [entry]
        assert collector.get_entries(time_range=before) == []

    def test_inverted_time_range_rejected(self):
        with pytest.raises(ValueError):
            TimeRange(
                start=Timestamp.from_iso("2000-01-02T00:00:00Z"),
                end=Timestamp.from_iso("2000-01-01T00:00:00Z"),
            )


class TestObservabilityEngine:

    def test_collectors_are_shared_per_layer(self):
        engine = ObservabilityEngine()
        assert engine.collector('history') is engine.collector('history')
        assert engine.collector('custom').layer_name == 'custom'

    def test_unified_log_and_report(self):
        engine = ObservabilityEngine()
        engine.collector('history').record("add")
        engine.collector('story').record("show")
        engine.collector('story').record("show")

        assert len(engine.get_unified_log()) == 3
        assert len(engine.get_unified_log(layers=['story'])) == 2
        assert engine.get_layer_log('nowhere') == []

        report = engine.generate_audit_report()
        assert report['total_entries'] == 3
        assert report['by_layer'] == {'history': 1, 'story': 2}
        assert report['by_action'] == {'add': 1, 'show': 2}

    def test_disabled_engine(self):
        engine = ObservabilityEngine(ObservabilityConfig(enable_audit=False))
        engine.collector('story').record("show")
        engine.collector('late').record("x")

        assert engine.generate_audit_report()['total_entries'] == 0


class TestUsageError:

    def test_carries_code_and_context(self):
        error = UsageError.create(ErrorCode.UNKNOWN_CONTENT, "No such passage", name="moon")

        assert error.code == ErrorCode.UNKNOWN_CONTENT
        assert str(error) == "No such passage"
        assert error.error.context == (("name", "moon"),)
