"""
Story Model and Loader Tests
============================

Twine story-data parsing and passage lookups.
"""

import pytest

from narrative_engine.contracts.base import ErrorCode, UsageError
from narrative_engine.story import (
    Passage, Story, PlainRenderer, parse_story_html, load_story,
)


STORY_HTML = """<!DOCTYPE html>
<html>
<body>
<tw-story></tw-story>
<tw-storydata name="The Dungeon" startnode="2" creator="Twine" creator-version="2.6.2"
  ifid="D674C58C-DEFA-4F70-B7A2-27742230C0FC" format="Snowman" options="" hidden>
<style role="stylesheet" id="twine-user-stylesheet" type="text/twine-css">body { color: red; }</style>
<script role="script" id="twine-user-script" type="text/twine-javascript">s.gold = 0;</script>
<tw-passagedata pid="1" name="Cellar" tags="dark damp" position="100,100">A cold cellar.
&lt;requirements&gt;{&quot;lantern&quot;: true, &quot;priority&quot;: 2}&lt;/requirements&gt;</tw-passagedata>
<tw-passagedata pid="2" name="Entrance" tags="" position="200,100">You stand at the gate. [[Cellar]] &amp; more</tw-passagedata>
<tw-passagedata pid="3" name="Vault" tags="dark" position="300,100"></tw-passagedata>
</tw-storydata>
</body>
</html>
"""


class TestParseStoryHtml:

    @pytest.fixture
    def story(self):
        return parse_story_html(STORY_HTML)

    def test_story_attributes(self, story):
        assert story.name == "The Dungeon"
        assert story.start_passage == 2
        assert story.creator == "Twine"
        assert story.creator_version == "2.6.2"
        assert story.ifid == "D674C58C-DEFA-4F70-B7A2-27742230C0FC"

    def test_passages(self, story):
        assert [p.name for p in story.passages] == ["Cellar", "Entrance", "Vault"]
        cellar = story.get_passage_by_name("Cellar")
        assert cellar.pid == 1
        assert cellar.tags == ("dark", "damp")

    def test_passage_text_is_unescaped(self, story):
        cellar = story.get_passage_by_name("Cellar")
        assert '<requirements>{"lantern": true, "priority": 2}</requirements>' in cellar.source
        entrance = story.get_passage_by_id(2)
        assert entrance.source == "You stand at the gate. [[Cellar]] & more"

    def test_empty_tags_and_source(self, story):
        vault = story.get_passage_by_name("Vault")
        entrance = story.get_passage_by_name("Entrance")
        assert vault.source == ""
        assert entrance.tags == ()

    def test_scripts_and_styles_are_captured(self, story):
        assert story.user_scripts == ("s.gold = 0;",)
        assert story.user_styles == ("body { color: red; }",)

    def test_missing_story_data(self):
        with pytest.raises(UsageError) as exc_info:
            parse_story_html("<html><body>nothing</body></html>")
        assert exc_info.value.code == ErrorCode.MALFORMED_STORY_DATA

    def test_bad_pid(self):
        markup = '<tw-storydata name="s" startnode="1"><tw-passagedata pid="x" name="A">a</tw-passagedata></tw-storydata>'
        with pytest.raises(UsageError) as exc_info:
            parse_story_html(markup)
        assert exc_info.value.code == ErrorCode.MALFORMED_STORY_DATA

    def test_load_story_from_file(self, tmp_path):
        path = tmp_path / "story.html"
        path.write_text(STORY_HTML, encoding="utf-8")

        story = load_story(path)

        assert story.name == "The Dungeon"
        assert len(story.passages) == 3


class TestLookups:

    @pytest.fixture
    def story(self):
        return Story.from_passages("Lookups", [
            Passage(pid=1, name="A", tags=("hub",)),
            Passage(pid=2, name="B", tags=("hub", "end")),
            Passage(pid=3, name="C"),
        ])

    def test_start_defaults_to_first_passage(self, story):
        assert story.start_passage == 1

    def test_by_name_and_id(self, story):
        assert story.get_passage_by_name("B").pid == 2
        assert story.get_passage_by_name("Q") is None
        assert story.get_passage_by_id(3).name == "C"
        assert story.get_passage_by_id(99) is None

    def test_by_tags(self, story):
        assert [p.name for p in story.get_passages_by_tags("hub")] == ["A", "B"]
        assert story.get_passages_by_tags("missing") == []

    def test_tags_normalized_to_tuple(self):
        passage = Passage(pid=1, name="A", tags=["x", "y"])
        assert passage.tags == ("x", "y")

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            Passage(pid=1, name="")


class TestPlainRenderer:

    def test_strips_requirements_block(self):
        passage = Passage(
            pid=1, name="A",
            source='  Hello.\n<requirements>{"a": 1}</requirements>\n',
        )
        assert PlainRenderer().render(passage) == "Hello."

    def test_custom_tag(self):
        passage = Passage(pid=1, name="A", source="<needs>{}</needs>Text")
        assert PlainRenderer("needs").render(passage) == "Text"
