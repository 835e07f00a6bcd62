"""
Leitner Spaced Repetition Scheduler.

Each card sits in a numbered box. Box 0 holds new or failed cards; every
"easy" rating promotes a card one box and pushes its next review further out.

Rating semantics:
- hard:   back to box 0, review again now (no progress)
- medium: keep the box, review again now (no regression, no advancement)
- easy:   promote one box, next review after the interval for the new box

Session-level repetition (hard/medium) is kept separate from long-term
scheduling (easy), which only the easy rating touches.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from skilltree.learning.models import Card, Rating

# Review interval for boxes 1..5; anything beyond uses LONG_TERM_INTERVAL.
BOX_INTERVALS: tuple[timedelta, ...] = (
    timedelta(hours=4),
    timedelta(days=1),
    timedelta(days=3),
    timedelta(days=7),
    timedelta(days=14),
)
LONG_TERM_INTERVAL = timedelta(days=30)


@dataclass(frozen=True)
class ReviewState:
    """Scheduling outcome for a single rating."""

    box: int
    next_review_at: datetime


def interval_for_box(box: int) -> timedelta:
    """
    Review interval for a card that has just entered `box`.

    Args:
        box: Leitner box after promotion (>= 1)

    Returns:
        Time until the card is due again
    """
    if box < 1:
        return timedelta(0)
    if box <= len(BOX_INTERVALS):
        return BOX_INTERVALS[box - 1]
    return LONG_TERM_INTERVAL


def next_state(card: Card, rating: Rating, now: datetime) -> ReviewState:
    """
    Compute a card's next scheduling state from a rating.

    Pure function: the card is not modified. The caller persists the result
    and recomputes the node's mastery count.
    """
    if rating == Rating.HARD:
        return ReviewState(box=0, next_review_at=now)
    if rating == Rating.MEDIUM:
        return ReviewState(box=card.box, next_review_at=now)

    new_box = card.box + 1
    return ReviewState(box=new_box, next_review_at=now + interval_for_box(new_box))
