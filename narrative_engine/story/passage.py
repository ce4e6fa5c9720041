"""
Passage and Story content model.

Pure data plus lookups. Nothing here touches state or history.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple
import re


DEFAULT_REQUIREMENT_TAG = "requirements"


def requirement_pattern(tag: str = DEFAULT_REQUIREMENT_TAG) -> re.Pattern:
    """Matches an embedded <requirements>...</requirements> block in passage source."""
    return re.compile(
        rf"<{re.escape(tag)}>(.*?)</{re.escape(tag)}>",
        re.DOTALL | re.IGNORECASE,
    )


@dataclass(frozen=True)
class Passage:
    """One named unit of story content."""
    pid: int
    name: str
    tags: Tuple[str, ...] = field(default_factory=tuple)
    source: str = ""

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("Passage name must be a non-empty string")
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, 'tags', tuple(self.tags))


@dataclass(frozen=True)
class Story:
    """
    Immutable story definition.

    Twine prevents duplicate passage names and ids, so lookups return the
    first match.
    """
    name: str
    start_passage: int
    passages: Tuple[Passage, ...] = field(default_factory=tuple)
    creator: Optional[str] = None
    creator_version: Optional[str] = None
    ifid: Optional[str] = None
    user_scripts: Tuple[str, ...] = field(default_factory=tuple)
    user_styles: Tuple[str, ...] = field(default_factory=tuple)

    @staticmethod
    def from_passages(
        name: str,
        passages: Iterable[Passage],
        start_passage: Optional[int] = None
    ) -> Story:
        """Build a story in code; the start defaults to the first passage."""
        passages = tuple(passages)
        if start_passage is None:
            start_passage = passages[0].pid if passages else 1
        return Story(name=name, start_passage=start_passage, passages=passages)

    def get_passage_by_id(self, pid: int) -> Optional[Passage]:
        for passage in self.passages:
            if passage.pid == pid:
                return passage
        return None

    def get_passage_by_name(self, name: str) -> Optional[Passage]:
        for passage in self.passages:
            if passage.name == name:
                return passage
        return None

    def get_passages_by_tags(self, tag: str) -> List[Passage]:
        return [passage for passage in self.passages if tag in passage.tags]
