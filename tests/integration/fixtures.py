"""
Integration Test Fixtures

A small fixed story used across the session tests.
All fixtures are explicit - no random generation.
"""

from narrative_engine.story import Passage, Story


# =============================================================================
# PASSAGES
# =============================================================================

INTRO = Passage(pid=1, name="intro", source="You wake in a quiet village.")

SHOP = Passage(
    pid=2, name="shop", tags=("town",),
    source="A dusty shop.\n<requirements>{\"gold\": {\"$gte\": 5}, \"priority\": 1}</requirements>",
)

FOREST = Passage(
    pid=3, name="forest", tags=("wild",),
    source="Tall pines.<requirements>{\"has_map\": true, \"priority\": 4}</requirements>",
)

CASTLE = Passage(
    pid=4, name="castle",
    source="The gates are shut.<requirements>{\"$and\": [{\"has_map\": true}, {\"gold\": {\"$gte\": 50}}]}</requirements>",
)

BROKEN = Passage(
    pid=5, name="broken",
    source="<requirements>{not json}</requirements>Never a storylet.",
)


def create_village_story() -> Story:
    return Story.from_passages("Village", [INTRO, SHOP, FOREST, CASTLE, BROKEN])


def create_story_without_start() -> Story:
    return Story.from_passages("Headless", [INTRO, SHOP], start_passage=99)
