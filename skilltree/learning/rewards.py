"""
Session reward hooks.

The progression service notifies a RewardHook when a card leaves box 0 and
when a study sitting empties its queue. DailyStreakRewards grants diamonds
for the first completed sitting of each calendar day and tracks the streak.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Protocol

from loguru import logger

from skilltree.core import utc_now
from skilltree.learning.models import Card


class RewardHook(Protocol):
    """Receives progress events from study sittings."""

    def on_card_mastered(self, learner_id: str, card: Card) -> None:
        ...

    def on_session_complete(self, learner_id: str) -> bool:
        """Return True if the learner was rewarded for this sitting."""
        ...


class NoRewards:
    """RewardHook that ignores every event."""

    def on_card_mastered(self, learner_id: str, card: Card) -> None:
        return None

    def on_session_complete(self, learner_id: str) -> bool:
        return False


@dataclass
class RewardBalance:
    """Gamification state for one learner."""

    diamonds: int = 0
    streak_days: int = 0
    cards_mastered: int = 0
    last_study_date: date | None = None


class DailyStreakRewards:
    """Grant a fixed diamond amount for the first completed sitting of a day."""

    def __init__(
        self,
        amount: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.amount = amount
        self._clock = clock
        self._balances: dict[str, RewardBalance] = {}

    def balance(self, learner_id: str) -> RewardBalance:
        return self._balances.setdefault(learner_id, RewardBalance())

    def on_card_mastered(self, learner_id: str, card: Card) -> None:
        self.balance(learner_id).cards_mastered += 1

    def on_session_complete(self, learner_id: str) -> bool:
        today = self._clock().date()
        balance = self.balance(learner_id)
        if balance.last_study_date == today:
            return False

        balance.diamonds += self.amount
        balance.streak_days += 1
        balance.last_study_date = today
        logger.info(
            f"Daily reward for {learner_id}: +{self.amount} diamonds "
            f"(streak {balance.streak_days} days)"
        )
        return True
