"""
Progression Service - the facade consumed by front-ends.

Composes the SRS scheduler, study queue, node state machine, exam engine and
path extension protocol over two injected collaborators: a ProgressStore and
a ContentProducer. Every operation names its learner and path explicitly;
there is no ambient session state beyond open exam attempts.

Each state transition (rating, exam completion, extension, deck generation)
is written back as a full path aggregate before the call returns.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from loguru import logger

from skilltree.core import utc_now
from skilltree.core.errors import GenerationFailed, PreconditionViolation
from skilltree.db.store import ProgressStore
from skilltree.learning import path_extension, srs
from skilltree.learning.models import Card, Node, Path, Rating, StudyMode, new_id
from skilltree.learning.node_state import (
    CompletionOutcome,
    NodeStateMachine,
    NodeStatus,
    is_passing_score,
    is_unlocked,
    node_status,
)
from skilltree.learning.policy import ProgressionPolicy
from skilltree.learning.rewards import NoRewards, RewardHook
from skilltree.learning.study_queue import StudyQueue
from skilltree.quiz.exam_engine import ExamEngine
from skilltree.quiz.models import AnswerOutcome, ExamAttempt

if TYPE_CHECKING:
    from skilltree.generation.content_producer import ContentProducer


@dataclass
class RatingResult:
    """Outcome of rating one card during a sitting."""

    queue_empty: bool
    session_done: bool
    card: Card
    mastered_count: int
    exam_unlocked_now: bool
    xp_awarded: int
    daily_reward: bool = False


@dataclass
class ExamResult:
    """Outcome of a finished exam attempt."""

    score_percent: float
    passed: bool
    session_xp: int
    correct_count: int
    total_questions: int
    unlocked_node_id: str | None = None
    path_extendable: bool = False


class ProgressionService:
    """Learning path progression for a single learner at a time."""

    def __init__(
        self,
        store: ProgressStore,
        producer: ContentProducer,
        policy: ProgressionPolicy | None = None,
        rewards: RewardHook | None = None,
        clock: Callable[[], datetime] = utc_now,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.producer = producer
        self.policy = policy or ProgressionPolicy()
        self.rewards = rewards or NoRewards()
        self.nodes = NodeStateMachine(self.policy)
        self.exams = ExamEngine()
        self._clock = clock
        self._rng = rng or random.Random()
        self._open_attempts: dict[tuple[str, str], str] = {}

    # =========================================================================
    # Paths
    # =========================================================================

    def create_path(
        self,
        learner_id: str,
        topic: str,
        level: str = "Beginner",
        goal: str = "",
        daily_commitment: str = "",
        title: str | None = None,
    ) -> Path:
        """Generate a new path for `topic`. Node 0 opens, the rest start locked."""
        stubs = self.producer.generate_path(topic, level, goal, daily_commitment)
        if not stubs:
            raise PreconditionViolation("A learning path needs at least one node")

        path = Path(
            id=new_id("lp"),
            owner_id=learner_id,
            title=title or topic,
            topic=topic,
            nodes=path_extension.build_nodes(stubs, first_unlocked=True),
            created_at=self._clock(),
            target_level=level,
            goal=goal,
            daily_commitment=daily_commitment,
        )
        self.store.save_path(path)
        logger.info(f"Created path {path.id} '{path.title}' with {len(path.nodes)} nodes")
        return path

    def get_path(self, learner_id: str, path_id: str) -> Path:
        """Load a path, checking that it belongs to `learner_id`."""
        path = self.store.load_path(path_id)
        if path.owner_id != learner_id:
            raise PreconditionViolation(f"Path {path_id} does not belong to learner {learner_id}")
        return path

    def list_paths(self, learner_id: str) -> list[Path]:
        return self.store.list_paths(learner_id)

    def node_status(self, learner_id: str, path_id: str, node_id: str) -> NodeStatus:
        path = self.get_path(learner_id, path_id)
        index = self._index(path, node_id)
        return node_status(
            path,
            index,
            mastery_threshold=self.policy.mastery_threshold,
            exam_in_progress=(path_id, node_id) in self._open_attempts,
        )

    # =========================================================================
    # Flashcard sittings
    # =========================================================================

    def start_session(
        self,
        learner_id: str,
        path_id: str,
        node_id: str,
        mode: StudyMode = StudyMode.NEW,
    ) -> StudyQueue:
        """
        Open a flashcard sitting on an unlocked node.

        Generates and persists the node's deck on first study. If generation
        fails, nothing is stored and GenerationFailed propagates.

        A deck too small to ever reach the mastery threshold counts as a failed
        generation. Opening a sitting abandons any exam attempt left open on
        the node.
        """
        path = self.get_path(learner_id, path_id)
        node = self._unlocked_node(path, node_id)

        if not node.deck:
            cards = self.producer.generate_deck(node.title, node.description, self.policy.deck_size)
            if len(cards) < self.policy.mastery_threshold:
                logger.warning(f"Rejected deck of {len(cards)} cards for node {node_id}")
                raise GenerationFailed(
                    "deck",
                    f"got {len(cards)} cards, need at least {self.policy.mastery_threshold}",
                )
            self.nodes.attach_deck(node, cards)
            self.store.save_path(path)

        if self._open_attempts.pop((path_id, node_id), None) is not None:
            logger.info(f"Abandoned open exam attempt on node {node_id}")

        queue = StudyQueue.build(
            node.deck,
            mode,
            now=self._clock(),
            fallback_sample=self.policy.review_fallback_sample,
            rng=self._rng,
            learner_id=learner_id,
            path_id=path_id,
            node_id=node_id,
        )
        logger.info(f"Study sitting on node {node_id} ({mode.value}): {len(queue)} cards")
        return queue

    def rate_card(self, queue: StudyQueue, card_id: str, rating: Rating) -> RatingResult:
        """
        Rate a queued card: reschedule it, persist the node, then rotate the queue.

        The queue is only advanced after the store accepted the write.
        """
        if card_id not in queue:
            raise PreconditionViolation(f"Card {card_id} is not in the study queue")

        path = self.get_path(queue.learner_id, queue.path_id)
        node = self._node(path, queue.node_id)
        card = node.find_card(card_id)
        if card is None:
            raise PreconditionViolation(f"Card {card_id} does not belong to node {node.id}")

        now = self._clock()
        state = srs.next_state(card, rating, now)
        outcome = self.nodes.apply_review(node, card_id, state, now)
        self.store.save_path(path)

        xp_before = queue.session_xp
        queue.rate(card_id, rating)
        queue.refresh(outcome.card)

        if outcome.newly_mastered:
            self.rewards.on_card_mastered(queue.learner_id, outcome.card)

        daily_reward = False
        if queue.is_empty:
            daily_reward = self.rewards.on_session_complete(queue.learner_id)
            logger.info(
                f"Study sitting on node {node.id} complete: {queue.ratings_count} ratings, "
                f"{queue.session_xp} XP, {node.mastered_count} mastered"
            )

        return RatingResult(
            queue_empty=queue.is_empty,
            session_done=queue.is_empty,
            card=outcome.card,
            mastered_count=outcome.mastered_count,
            exam_unlocked_now=outcome.exam_unlocked_now,
            xp_awarded=queue.session_xp - xp_before,
            daily_reward=daily_reward,
        )

    # =========================================================================
    # Exams
    # =========================================================================

    def start_exam(self, learner_id: str, path_id: str, node_id: str) -> ExamAttempt:
        """Generate an exam for an exam-ready node and open an attempt."""
        path = self.get_path(learner_id, path_id)
        node = self._unlocked_node(path, node_id)
        self.nodes.require_exam_ready(node)

        questions = self.producer.generate_exam(node.title, self.policy.exam_size)
        attempt = self.exams.start(
            questions, learner_id=learner_id, path_id=path_id, node_id=node_id
        )
        self._open_attempts[(path_id, node_id)] = attempt.attempt_id
        logger.info(f"Exam started on node {node_id} ({len(questions)} questions)")
        return attempt

    def answer_question(
        self, attempt: ExamAttempt, question_id: str, answer: str | int
    ) -> AnswerOutcome:
        return self.exams.answer(attempt, question_id, answer)

    def finish_exam(self, attempt: ExamAttempt) -> ExamResult:
        """Score the attempt and apply the result to the node."""
        score = self.exams.finish(attempt)
        key = (attempt.path_id, attempt.node_id)
        if self._open_attempts.get(key) == attempt.attempt_id:
            del self._open_attempts[key]

        completion = self.complete_node(
            attempt.learner_id, attempt.path_id, attempt.node_id, score.score_percent
        )

        return ExamResult(
            score_percent=score.score_percent,
            passed=completion.passed,
            session_xp=score.session_xp,
            correct_count=score.correct_count,
            total_questions=score.total_questions,
            unlocked_node_id=completion.unlocked_node_id,
            path_extendable=completion.passed and completion.is_last_node,
        )

    def complete_node(
        self, learner_id: str, path_id: str, node_id: str, score_percent: float
    ) -> CompletionOutcome:
        """Record an exam score; a pass completes the node and opens the next one."""
        path = self.get_path(learner_id, path_id)
        outcome = self.nodes.complete(path, node_id, score_percent)
        self.store.save_path(path)
        return outcome

    def is_passing(self, score_percent: float) -> bool:
        return is_passing_score(score_percent, self.policy.pass_threshold)

    # =========================================================================
    # Extension
    # =========================================================================

    def extend_path(self, learner_id: str, path_id: str) -> list[Node]:
        """Append generated nodes after a completed final node."""
        path = self.get_path(learner_id, path_id)
        last = path_extension.require_extendable(path)

        stubs = self.producer.generate_extension_nodes(
            path.title, last.title, self.policy.extension_size
        )
        new_nodes = path_extension.append_nodes(path, stubs)
        self.store.save_path(path)
        return new_nodes

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _index(path: Path, node_id: str) -> int:
        index = path.index_of(node_id)
        if index < 0:
            raise PreconditionViolation(f"Node {node_id} is not part of path {path.id}")
        return index

    def _node(self, path: Path, node_id: str) -> Node:
        return path.nodes[self._index(path, node_id)]

    def _unlocked_node(self, path: Path, node_id: str) -> Node:
        index = self._index(path, node_id)
        if not is_unlocked(path, index):
            raise PreconditionViolation(f"Node {node_id} is locked")
        return path.nodes[index]
