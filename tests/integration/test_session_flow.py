"""
Session Flow Tests

Full play-throughs of a StorySession.

AXIOM UNDER TEST:
=================
The session is a thin orchestrator: every navigation lands in history,
every undo/redo restores recorded state, and persistence round-trips
the whole log.
"""

import pytest

from narrative_engine.contracts.base import ErrorCode, UsageError
from narrative_engine.engine import (
    EngineConfig, StorySession, NAVIGATION, UNDO, REDO,
)
from narrative_engine.observability import ObservabilityConfig
from narrative_engine.storage import InMemoryPersistence, StorageConfig

from .fixtures import create_story_without_start, create_village_story


@pytest.fixture
def session():
    return StorySession(create_village_story())


# =============================================================================
# NAVIGATION
# =============================================================================

class TestNavigation:

    def test_start_shows_start_passage(self, session):
        text = session.start()

        assert text == "You wake in a quiet village."
        assert session.current_passage.name == "intro"
        assert [e.content_id for e in session.history.entries] == ["intro"]

    def test_start_passage_missing(self):
        session = StorySession(create_story_without_start())

        with pytest.raises(UsageError) as exc_info:
            session.start()

        assert exc_info.value.code == ErrorCode.START_PASSAGE_MISSING
        assert len(session.history) == 0

    def test_show_renders_without_requirements(self, session):
        assert session.show("shop") == "A dusty shop."
        assert session.current_passage.name == "shop"

    def test_show_unknown_passage(self, session):
        session.start()

        with pytest.raises(UsageError) as exc_info:
            session.show("dragon")

        assert exc_info.value.code == ErrorCode.UNKNOWN_CONTENT
        assert len(session.history) == 1

    def test_render_does_not_navigate(self, session):
        assert session.render("forest") == "Tall pines."
        assert len(session.history) == 0

    def test_intro_shop_scenario(self, session):
        session.start()
        session.state.set("gold", 10)
        session.show("shop")

        assert session.undo() == "intro"
        assert session.state.get("gold") is None
        assert session.current_passage.name == "intro"

        assert session.redo() == "shop"
        assert session.state.get("gold") == 10
        assert session.current_passage.name == "shop"

    def test_boundaries_return_none(self, session):
        session.start()
        assert session.undo() is None
        assert session.redo() is None
        assert session.current_passage.name == "intro"


# =============================================================================
# EVENTS
# =============================================================================

class TestSessionEvents:

    def test_navigation_fires_before_history_records(self, session):
        seen = []
        session.on(NAVIGATION, lambda name: seen.append((name, len(session.history))))

        session.start()
        session.show("shop")

        assert seen == [("intro", 0), ("shop", 1)]

    def test_navigation_handler_edits_are_recorded(self, session):
        session.on(NAVIGATION, lambda name: session.state.set("last_seen", name))

        session.start()

        assert session.history.current.snapshot["last_seen"] == "intro"

    def test_undo_and_redo_events(self, session):
        undone, redone = [], []
        session.on(UNDO, undone.append)
        session.on(REDO, redone.append)
        session.start()
        session.show("shop")

        session.undo()
        session.undo()
        session.redo()

        assert undone == ["intro"]
        assert redone == ["shop"]

    def test_off(self, session):
        seen = []
        listener = session.on(NAVIGATION, seen.append)

        assert session.off(NAVIGATION, listener)
        session.start()

        assert seen == []


# =============================================================================
# STORYLETS
# =============================================================================

class TestStoryletsInSession:

    def test_passages_with_requirements_are_registered(self, session):
        registry = session.storylets

        assert registry.includes("shop")
        assert registry.includes("forest")
        assert registry.includes("castle")
        assert not registry.includes("intro")
        assert not registry.includes("broken")

    def test_availability_follows_state(self, session):
        session.start()
        assert session.get_available() == []

        session.state.set("gold", 10)
        assert session.get_available() == ["shop"]

        session.state.set("has_map", True)
        assert session.get_available() == ["forest", "shop"]

        session.state.set("gold", 60)
        assert session.get_available() == ["forest", "shop", "castle"]
        assert session.get_available(limit=1) == ["forest"]

    def test_availability_after_undo(self, session):
        session.start()
        session.state.set("gold", 10)
        session.show("shop")
        assert session.get_available() == ["shop"]

        session.undo()

        assert session.get_available() == []

    def test_malformed_requirement_is_audited(self, session):
        skipped = session.observability.get_layer_log('storylets')
        assert [(e.action, e.entity_id) for e in skipped if e.action == "import_skipped"] == [
            ("import_skipped", "broken"),
        ]


# =============================================================================
# PERSISTENCE
# =============================================================================

class TestSaveAndLoad:

    def test_load_resumes_at_saved_cursor(self):
        persistence = InMemoryPersistence()
        first = StorySession(create_village_story(), persistence=persistence)
        first.start()
        first.state.set("gold", 10)
        first.show("shop")
        first.state.set("has_map", True)
        first.show("forest")
        first.undo()

        assert first.save()

        second = StorySession(create_village_story(), persistence=persistence)
        assert second.load()

        assert second.history.cursor == 1
        assert [e.content_id for e in second.history.entries] == ["intro", "shop", "forest"]
        assert second.current_passage.name == "shop"
        assert second.state.snapshot() == {"gold": 10}
        assert second.redo() == "forest"
        assert second.state.snapshot() == {"gold": 10, "has_map": True}

    def test_non_json_values_reload_in_json_form(self):
        persistence = InMemoryPersistence()
        first = StorySession(create_village_story(), persistence=persistence)
        first.state.set("seen", {"owl"})
        first.state.set("pos", (1, 2))
        first.start()
        first.show("shop")
        first.save()

        second = StorySession(create_village_story(), persistence=persistence)
        second.load()

        assert second.state.snapshot() == {"seen": ["owl"], "pos": [1, 2]}
        assert second.undo() == "intro"
        assert second.state.get("seen") == ["owl"]

    def test_load_without_save(self, session):
        assert not session.has_save()
        assert session.load() is False

    def test_malformed_save_leaves_session_untouched(self):
        persistence = InMemoryPersistence()
        session = StorySession(create_village_story(), persistence=persistence)
        session.start()
        session.state.set("gold", 3)
        persistence.save("{broken")

        with pytest.raises(UsageError) as exc_info:
            session.load()

        assert exc_info.value.code == ErrorCode.MALFORMED_HISTORY
        assert session.state.get("gold") == 3
        assert len(session.history) == 1

    def test_file_backed_session(self, tmp_path):
        config = EngineConfig(
            storage=StorageConfig(backend_type="file", storage_path=str(tmp_path / "save.json"))
        )
        session = StorySession(create_village_story(), config)
        session.start()
        session.state.set("gold", 7)
        session.show("shop")
        session.save()

        resumed = StorySession(create_village_story(), config)
        assert resumed.has_save()
        assert resumed.load()
        assert resumed.state.get("gold") == 7
        assert resumed.current_passage.name == "shop"

        assert resumed.clear_save()
        assert not resumed.has_save()


# =============================================================================
# AUDIT AND INSPECTION
# =============================================================================

class TestAuditAndInspection:

    def test_navigation_is_traced(self, session):
        session.start()
        session.show("shop")
        session.undo()

        story_log = session.observability.get_layer_log('story')
        history_log = session.observability.get_layer_log('history')

        assert [e.entity_id for e in story_log] == ["intro", "shop"]
        assert [e.action for e in history_log] == ["add", "add", "undo"]

        report = session.observability.generate_audit_report()
        assert report['by_action']['show'] == 2

    def test_audit_can_be_disabled(self):
        config = EngineConfig(observability=ObservabilityConfig(enable_audit=False))
        session = StorySession(create_village_story(), config)
        session.start()

        assert session.observability.get_unified_log() == []

    def test_describe(self, session):
        session.start()
        session.state.set("gold", 10)
        session.show("shop")

        assert session.describe() == {
            "story": "Village",
            "current_passage": "shop",
            "cursor": 1,
            "history_length": 2,
            "can_undo": True,
            "can_redo": False,
            "state": {"gold": 10},
        }

    def test_reset(self, session):
        session.start()
        session.state.set("gold", 10)

        session.reset()

        assert len(session.history) == 0
        assert len(session.state) == 0
        assert session.current_passage is None
        assert session.storylets.includes("shop")
