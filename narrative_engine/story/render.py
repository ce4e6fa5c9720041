"""
Render collaborator interface.

Turning passage text into presentable output (markdown, templates, HTML)
belongs to the presentation layer. The engine only needs something that
maps a passage to a string.
"""

from __future__ import annotations

from .passage import DEFAULT_REQUIREMENT_TAG, Passage, requirement_pattern


class Renderer:
    """Abstract renderer interface."""

    def render(self, passage: Passage) -> str:
        raise NotImplementedError


class PlainRenderer(Renderer):
    """Passage source without its requirements block, trimmed."""

    def __init__(self, requirement_tag: str = DEFAULT_REQUIREMENT_TAG):
        self._pattern = requirement_pattern(requirement_tag)

    def render(self, passage: Passage) -> str:
        return self._pattern.sub("", passage.source).strip()
