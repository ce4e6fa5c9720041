"""
Story Layer

RESPONSIBILITY: Story content model, loading and rendering hooks
OUTPUTS: Story, Passage

WHAT THIS LAYER MUST NOT DO:
============================
- Read or write narrative state
- Execute user scripts or apply user styles
"""

from .passage import Passage, Story
from .loader import parse_story_html, load_story
from .render import Renderer, PlainRenderer

__all__ = [
    'Passage',
    'Story',
    'parse_story_html',
    'load_story',
    'Renderer',
    'PlainRenderer',
]
