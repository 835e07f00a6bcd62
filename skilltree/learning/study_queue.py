"""
Study Queue - rotation structure for one flashcard sitting.

A sitting ends exactly when the queue is empty. Cards leave the queue only on
an "easy" rating; "hard" and "medium" rotate the card to the tail, so every
card in the initial queue must be rated easy once before the sitting can end.
"""

from __future__ import annotations

import random
from collections import deque
from datetime import datetime

from loguru import logger

from skilltree.core.errors import PreconditionViolation
from skilltree.learning.models import Card, Rating, StudyMode

EASY_CARD_XP = 10


def select_session_cards(
    deck: list[Card],
    mode: StudyMode,
    now: datetime,
    fallback_sample: int = 10,
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Choose the cards for a new sitting.

    Args:
        deck: The node's full deck (must not be empty)
        mode: NEW draws unseen/due cards, REVIEW draws the whole deck
        now: Reference time for due checks
        fallback_sample: Cap on the random sample used when nothing is due
        rng: Random source for the fallback sample

    Returns:
        Cards in presentation order
    """
    if not deck:
        raise PreconditionViolation("Cannot build a study queue from an empty deck")

    if mode == StudyMode.REVIEW:
        return list(deck)

    selected = [card for card in deck if card.box == 0 or card.is_due(now)]
    if selected:
        return selected

    # Everything mastered and not yet due: keep the learner busy anyway
    rng = rng or random.Random()
    sample_size = min(fallback_sample, len(deck))
    logger.debug(f"No due cards, sampling {sample_size} of {len(deck)} for practice")
    return rng.sample(deck, sample_size)


class StudyQueue:
    """
    In-memory queue driving one study sitting.

    Holds card snapshots keyed by id; the owning node's deck stays the source
    of truth and is updated by the caller after every rating.
    """

    def __init__(
        self,
        cards: list[Card],
        mode: StudyMode = StudyMode.NEW,
        learner_id: str = "",
        path_id: str = "",
        node_id: str = "",
    ):
        if not cards:
            raise PreconditionViolation("Cannot build a study queue from an empty deck")

        self.mode = mode
        self.learner_id = learner_id
        self.path_id = path_id
        self.node_id = node_id

        self._order: deque[str] = deque(card.id for card in cards)
        self._cards: dict[str, Card] = {card.id: card for card in cards}
        self.initial_size = len(self._order)
        self.cleared: list[str] = []
        self.ratings_count = 0
        self.session_xp = 0

    @classmethod
    def build(
        cls,
        deck: list[Card],
        mode: StudyMode,
        now: datetime,
        fallback_sample: int = 10,
        rng: random.Random | None = None,
        **context: str,
    ) -> "StudyQueue":
        """Build a queue for `mode` from a node's deck."""
        cards = select_session_cards(deck, mode, now, fallback_sample, rng)
        return cls(cards, mode=mode, **context)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._order

    @property
    def is_empty(self) -> bool:
        return not self._order

    @property
    def head(self) -> Card | None:
        """Card to present next."""
        if not self._order:
            return None
        return self._cards[self._order[0]]

    @property
    def cards(self) -> list[Card]:
        """Remaining cards in presentation order."""
        return [self._cards[card_id] for card_id in self._order]

    def rate(self, card_id: str, rating: Rating) -> bool:
        """
        Apply a rating to a queued card.

        Args:
            card_id: Card being rated (normally the head, any position accepted)
            rating: Learner's rating

        Returns:
            True if the card left the queue (easy), False if it was rotated
        """
        if card_id not in self._order:
            raise PreconditionViolation(f"Card {card_id} is not in the study queue")

        self._order.remove(card_id)
        self.ratings_count += 1

        if rating == Rating.EASY:
            self.cleared.append(card_id)
            self.session_xp += EASY_CARD_XP
            return True

        self._order.append(card_id)
        return False

    def refresh(self, card: Card) -> None:
        """Replace the snapshot of a card after its schedule changed."""
        if card.id in self._cards:
            self._cards[card.id] = card
