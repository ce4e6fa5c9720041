"""
Narrative State Engine

State, history and storylet selection for an interactive-fiction runtime.
Each layer communicates through explicit contracts.

LAYER STRUCTURE:
================

1. STATE LAYER (state/)
   - Responsibility: Story variables with observable mutation
   - Outputs: change/deletion notifications, deep-copied snapshots
   - MUST NOT: Know about passages, history or storylets

2. TEMPORAL LAYER (temporal/)
   - Responsibility: Snapshot history with undo/redo and visit counts
   - Inputs: StateStore snapshots
   - MUST NOT: Discard entries when navigating

3. STORYLET LAYER (storylets/)
   - Responsibility: Requirement-gated, priority-ranked availability
   - Inputs: Passages, live state, a PredicateEvaluator
   - MUST NOT: Mutate state

4. STORY LAYER (story/)
   - Responsibility: Passage model, Twine story-data loading, rendering hook
   - MUST NOT: Execute user scripts

5. PERSISTENCE LAYER (storage/)
   - Responsibility: Store serialized history blobs
   - MUST NOT: Interpret the blob

6. OBSERVABILITY LAYER (observability/)
   - Responsibility: Audit log of engine operations
   - MUST NOT: Modify system behavior

CONSTRAINTS ENFORCED:
=====================
- Snapshots never alias live state
- History is append-only; navigation only moves the cursor
- Usage errors raise UsageError with an explicit ErrorCode
- Boundary undo/redo is a None result, not an error
- Single reader, single thread, no background work
"""

from .contracts import ErrorCode, UsageError, HistoryEntry, StoryletEntry
from .engine import StorySession, EngineConfig, RegistryConfig
from .state import StateStore
from .story import Passage, Story, parse_story_html, load_story
from .storylets import StoryletRegistry, PredicateEvaluator, MongoQueryEvaluator
from .temporal import HistoryLog

__all__ = [
    'ErrorCode',
    'UsageError',
    'HistoryEntry',
    'StoryletEntry',
    'StorySession',
    'EngineConfig',
    'RegistryConfig',
    'StateStore',
    'Passage',
    'Story',
    'parse_story_html',
    'load_story',
    'StoryletRegistry',
    'PredicateEvaluator',
    'MongoQueryEvaluator',
    'HistoryLog',
]
