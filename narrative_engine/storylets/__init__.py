"""
Storylet Layer

RESPONSIBILITY: Requirement-gated, priority-ranked content selection
ALLOWED INPUTS: Passages, requirement query-documents, live state
OUTPUTS: Ordered lists of available content references

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate narrative state
- Render content
- Treat an empty requirement as always available
"""

from .predicate import PredicateEvaluator, MongoQueryEvaluator
from .registry import (
    StoryletRegistry, MalformedRequirement, parse_requirement_block, coerce_priority
)
from ..contracts.events import StoryletEntry

__all__ = [
    'PredicateEvaluator',
    'MongoQueryEvaluator',
    'StoryletRegistry',
    'StoryletEntry',
    'MalformedRequirement',
    'parse_requirement_block',
    'coerce_priority',
]
