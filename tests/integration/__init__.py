"""
Integration Tests Package

End-to-end session behaviour: story content, state, history, storylets
and persistence wired together through StorySession.

TEST AXIOMS:
=============
1. Undo/redo always restores the exact recorded state
2. A saved game resumes where it was left, cursor included
3. Failures surface as typed UsageError codes
"""
