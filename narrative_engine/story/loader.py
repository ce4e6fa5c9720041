"""
Twine Story Data Loader

Reads published Twine 2 story markup:

    <tw-storydata name=... startnode=... creator=... ifid=...>
      <style type="text/twine-css">...</style>
      <script type="text/twine-javascript">...</script>
      <tw-passagedata pid="1" name="Start" tags="a b">text</tw-passagedata>
    </tw-storydata>

PRINCIPLES:
===========
1. Passage text is kept verbatim (entities unescaped, markup untouched)
2. Scripts and styles are captured as data, never executed
3. Missing story data is an explicit usage error
"""

from __future__ import annotations
from html.parser import HTMLParser
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..contracts.base import ErrorCode, UsageError
from .passage import Passage, Story


SCRIPT_TYPE = "text/twine-javascript"
STYLE_TYPE = "text/twine-css"


class StoryDataParser(HTMLParser):
    """Collects the first tw-storydata element and its children."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.story_attrs: Optional[Dict[str, str]] = None
        self.passages: List[Passage] = []
        self.scripts: List[str] = []
        self.styles: List[str] = []

        self._in_story = False
        self._story_done = False
        self._capture: Optional[Tuple[str, Dict[str, str]]] = None
        self._buffer: List[str] = []

    def handle_starttag(self, tag, attrs):
        attributes = {key: value or "" for key, value in attrs}

        if tag == "tw-storydata" and not self._story_done and not self._in_story:
            self._in_story = True
            self.story_attrs = attributes
            return

        if self._capture is not None:
            # Markup nested inside passage text is preserved as text
            self._buffer.append(self.get_starttag_text() or "")
            return

        if tag == "tw-passagedata" and self._in_story:
            self._start_capture(tag, attributes)
        elif tag in ("script", "style") and attributes.get("type") in (SCRIPT_TYPE, STYLE_TYPE):
            self._start_capture(tag, attributes)

    def handle_startendtag(self, tag, attrs):
        if self._capture is not None:
            self._buffer.append(self.get_starttag_text() or "")
        else:
            self.handle_starttag(tag, attrs)
            if self._capture is not None and self._capture[0] == tag:
                self._finish_capture()

    def handle_endtag(self, tag):
        if self._capture is not None and tag == self._capture[0]:
            self._finish_capture()
            return
        if self._capture is not None:
            self._buffer.append(f"</{tag}>")
            return
        if tag == "tw-storydata" and self._in_story:
            self._in_story = False
            self._story_done = True

    def handle_data(self, data):
        if self._capture is not None:
            self._buffer.append(data)

    def _start_capture(self, tag: str, attributes: Dict[str, str]):
        self._capture = (tag, attributes)
        self._buffer = []

    def _finish_capture(self):
        tag, attributes = self._capture
        text = "".join(self._buffer)
        self._capture = None
        self._buffer = []

        if tag == "tw-passagedata":
            self.passages.append(_build_passage(attributes, text))
        elif attributes.get("type") == SCRIPT_TYPE:
            self.scripts.append(text)
        else:
            self.styles.append(text)


def _build_passage(attributes: Dict[str, str], text: str) -> Passage:
    try:
        pid = int(attributes.get("pid", ""))
    except ValueError:
        raise UsageError.create(
            ErrorCode.MALFORMED_STORY_DATA,
            f"Passage {attributes.get('name')!r} has a non-numeric pid",
            pid=attributes.get("pid", ""),
        )

    name = attributes.get("name", "")
    if not name:
        raise UsageError.create(
            ErrorCode.MALFORMED_STORY_DATA,
            f"Passage with pid {pid} has no name",
            pid=pid,
        )

    tags = tuple(tag for tag in attributes.get("tags", "").split(" ") if tag)
    return Passage(pid=pid, name=name, tags=tags, source=text)


def parse_story_html(markup: str) -> Story:
    """Parse published Twine markup into a Story."""
    parser = StoryDataParser()
    parser.feed(markup)
    parser.close()

    attrs = parser.story_attrs
    if attrs is None:
        raise UsageError.create(
            ErrorCode.MALFORMED_STORY_DATA,
            "No tw-storydata element found",
        )

    try:
        start_passage = int(attrs.get("startnode", "1") or "1")
    except ValueError:
        raise UsageError.create(
            ErrorCode.MALFORMED_STORY_DATA,
            f"startnode {attrs.get('startnode')!r} is not a passage id",
        )

    return Story(
        name=attrs.get("name", ""),
        start_passage=start_passage,
        passages=tuple(parser.passages),
        creator=attrs.get("creator") or None,
        creator_version=attrs.get("creator-version") or None,
        ifid=attrs.get("ifid") or None,
        user_scripts=tuple(parser.scripts),
        user_styles=tuple(parser.styles),
    )


def load_story(path: Union[str, Path]) -> Story:
    """Read and parse a published story file."""
    return parse_story_html(Path(path).read_text(encoding="utf-8"))
