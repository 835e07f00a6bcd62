"""
Node State Machine.

Lifecycle of a node inside a path:

    LOCKED -> READY -> EXAM_READY -> EXAM_IN_PROGRESS -> COMPLETED

The status is never stored. It is derived on read from the persisted flags
(locked, completed, exam_unlocked, mastered_count) plus whether an exam
attempt is currently running. All flag mutations go through NodeStateMachine
so the flags cannot drift apart:

- mastered_count always equals the number of deck cards with box > 0
- exam_unlocked flips to True once, the first time mastery reaches the
  threshold, and never flips back
- a node is unlocked by completion of its predecessor (or by path extension)
  and never re-locks
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from loguru import logger

from skilltree.core.errors import PreconditionViolation
from skilltree.learning.models import Card, Node, Path
from skilltree.learning.policy import ProgressionPolicy
from skilltree.learning.srs import ReviewState


class NodeStatus(str, Enum):
    """Derived lifecycle state of a node."""

    LOCKED = "locked"
    READY = "ready"  # Flashcards still in progress
    EXAM_READY = "exam_ready"
    EXAM_IN_PROGRESS = "exam_in_progress"
    COMPLETED = "completed"


# =============================================================================
# Predicates (single source of truth for callers and presentation)
# =============================================================================


def count_mastered(deck: list[Card]) -> int:
    """Number of cards that have left box 0."""
    return sum(1 for card in deck if card.box > 0)


def is_exam_ready(node: Node, mastery_threshold: int = 20) -> bool:
    """Whether the node's exam may be started."""
    return node.exam_unlocked or node.mastered_count >= mastery_threshold


def is_passing_score(score_percent: float, pass_threshold: float = 40.0) -> bool:
    """Whether an exam percentage completes a node. The threshold is inclusive."""
    return score_percent >= pass_threshold


def is_unlocked(path: Path, index: int) -> bool:
    """Whether the node at `index` is open for study. Node 0 is always open."""
    if index < 0 or index >= len(path.nodes):
        return False
    return index == 0 or not path.nodes[index].locked


def node_status(
    path: Path,
    index: int,
    mastery_threshold: int = 20,
    exam_in_progress: bool = False,
) -> NodeStatus:
    """Derive the lifecycle state of the node at `index`."""
    node = path.nodes[index]
    if node.completed:
        return NodeStatus.COMPLETED
    if not is_unlocked(path, index):
        return NodeStatus.LOCKED
    if exam_in_progress:
        return NodeStatus.EXAM_IN_PROGRESS
    if is_exam_ready(node, mastery_threshold):
        return NodeStatus.EXAM_READY
    return NodeStatus.READY


# =============================================================================
# Transitions
# =============================================================================


@dataclass
class ReviewOutcome:
    """Effect of applying one SRS rating to a node."""

    card: Card
    mastered_count: int
    newly_mastered: bool  # Card moved out of box 0, raising the mastery count
    exam_unlocked_now: bool  # One-time exam unlock fired on this rating


@dataclass
class CompletionOutcome:
    """Effect of recording an exam score on a node."""

    passed: bool
    newly_completed: bool
    unlocked_node_id: str | None = None
    is_last_node: bool = False


class NodeStateMachine:
    """Owns every legal transition of a node's persisted flags."""

    def __init__(self, policy: ProgressionPolicy | None = None):
        self.policy = policy or ProgressionPolicy()

    def attach_deck(self, node: Node, cards: list[Card]) -> None:
        """Install a freshly generated deck on a node that has none."""
        if node.deck:
            raise PreconditionViolation(f"Node {node.id} already has a deck")
        if not cards:
            raise PreconditionViolation(f"Cannot attach an empty deck to node {node.id}")

        node.deck = list(cards)
        self.refresh(node)

    def refresh(self, node: Node) -> bool:
        """
        Recompute derived counters after a load or deck change.

        Returns:
            True if this call unlocked the exam for the first time
        """
        node.mastered_count = count_mastered(node.deck)
        return self._sync_exam_unlock(node)

    def apply_review(
        self,
        node: Node,
        card_id: str,
        state: ReviewState,
        now: datetime,
    ) -> ReviewOutcome:
        """
        Write a scheduler result into the node's deck.

        Args:
            node: Node owning the card
            card_id: Card that was rated
            state: Output of srs.next_state
            now: Review timestamp

        Returns:
            ReviewOutcome with the updated card and any one-time transitions
        """
        for i, card in enumerate(node.deck):
            if card.id == card_id:
                break
        else:
            raise PreconditionViolation(f"Card {card_id} does not belong to node {node.id}")

        updated = replace(
            card,
            box=state.box,
            next_review_at=state.next_review_at,
            last_reviewed_at=now,
        )
        node.deck[i] = updated
        newly_mastered = card.box == 0 and updated.box > 0

        exam_unlocked_now = self.refresh(node)

        logger.debug(
            f"Card {card_id} on node {node.id}: box {card.box} -> {updated.box}, "
            f"mastered={node.mastered_count}"
        )

        return ReviewOutcome(
            card=updated,
            mastered_count=node.mastered_count,
            newly_mastered=newly_mastered,
            exam_unlocked_now=exam_unlocked_now,
        )

    def require_exam_ready(self, node: Node) -> None:
        """Guard for starting an exam."""
        if not is_exam_ready(node, self.policy.mastery_threshold):
            raise PreconditionViolation(
                f"Exam for node {node.id} requires {self.policy.mastery_threshold} mastered "
                f"cards, has {node.mastered_count}"
            )

    def complete(self, path: Path, node_id: str, score_percent: float) -> CompletionOutcome:
        """
        Record an exam score and, on a pass, complete the node.

        A pass marks the node completed and unlocks the next node in the path.
        A fail leaves the node open for another attempt. The best score is kept
        and nothing is ever re-locked, so repeating a call is harmless.
        """
        index = path.index_of(node_id)
        if index < 0:
            raise PreconditionViolation(f"Node {node_id} is not part of path {path.id}")

        if not is_unlocked(path, index):
            raise PreconditionViolation(f"Node {node_id} is locked and cannot be completed")

        node = path.nodes[index]
        if node.exam_score is None or score_percent > node.exam_score:
            node.exam_score = score_percent

        is_last = index == len(path.nodes) - 1
        if not is_passing_score(score_percent, self.policy.pass_threshold):
            logger.info(f"Node {node_id} attempt scored {score_percent}%, below pass mark")
            return CompletionOutcome(passed=False, newly_completed=False, is_last_node=is_last)

        newly_completed = not node.completed
        node.completed = True

        unlocked_id = None
        if not is_last:
            successor = path.nodes[index + 1]
            successor.locked = False
            unlocked_id = successor.id

        if newly_completed:
            logger.info(f"Node {node_id} completed with {score_percent}%")

        return CompletionOutcome(
            passed=True,
            newly_completed=newly_completed,
            unlocked_node_id=unlocked_id,
            is_last_node=is_last,
        )

    def _sync_exam_unlock(self, node: Node) -> bool:
        if node.exam_unlocked or node.mastered_count < self.policy.mastery_threshold:
            return False
        node.exam_unlocked = True
        logger.info(f"Exam unlocked for node {node.id} ({node.mastered_count} cards mastered)")
        return True
