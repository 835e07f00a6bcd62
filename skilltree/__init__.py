"""
skilltree - learning path progression engine.

Flashcard mastery (Leitner spaced repetition) gates a per-node exam, and
passing the exam opens the next node of the path.
"""

__version__ = "1.0.0"
