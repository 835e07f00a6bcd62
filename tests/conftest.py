"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests:
a controllable clock, a scripted content producer, and a service wired to
an in-memory store.
"""
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from skilltree.core.errors import GenerationFailed  # noqa: E402
from skilltree.db.store import InMemoryProgressStore  # noqa: E402
from skilltree.learning.models import Card, NodeKind, NodeStub  # noqa: E402
from skilltree.learning.policy import ProgressionPolicy  # noqa: E402
from skilltree.learning.progression_service import ProgressionService  # noqa: E402
from skilltree.learning.rewards import DailyStreakRewards  # noqa: E402
from skilltree.quiz.models import ExamQuestion, QuestionKind  # noqa: E402

START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (store + service)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


def make_deck(size: int, now: datetime = START, prefix: str = "card") -> list[Card]:
    return [
        Card(id=f"{prefix}-{i}", front=f"Term {i}", back=f"Meaning {i}", next_review_at=now)
        for i in range(size)
    ]


def make_questions() -> list[ExamQuestion]:
    """Five questions: mcq answer "1", fill_gap "paris", short_answer "Photosynthesis"."""
    return [
        ExamQuestion(id="q1", kind=QuestionKind.MCQ, prompt="2 + 2?", correct_answer="1",
                     options=["3", "4", "5", "22"], explanation="Basic addition"),
        ExamQuestion(id="q2", kind=QuestionKind.FILL_GAP, prompt="Capital of France: ___",
                     correct_answer="Paris"),
        ExamQuestion(id="q3", kind=QuestionKind.SHORT_ANSWER, prompt="How do plants make food?",
                     correct_answer="Photosynthesis"),
        ExamQuestion(id="q4", kind=QuestionKind.MCQ, prompt="Largest planet?", correct_answer="0",
                     options=["Jupiter", "Mars"]),
        ExamQuestion(id="q5", kind=QuestionKind.FILL_GAP, prompt="H2O is ___",
                     correct_answer="water"),
    ]


CORRECT_ANSWERS = {"q1": "1", "q2": "paris", "q3": "  photosynthesis ", "q4": "0", "q5": "Water"}


class FakeContentProducer:
    """Scripted ContentProducer recording every call."""

    def __init__(self, clock=None, deck_size: int = 30, path_nodes: int = 3):
        self.clock = clock or FixedClock()
        self.deck_size = deck_size
        self.path_nodes = path_nodes
        self.questions = make_questions()
        self.fail_on: set[str] = set()
        self.calls: list[tuple] = []

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise GenerationFailed(operation, "quota exceeded")

    def generate_deck(self, topic, description, count=30):
        self.calls.append(("deck", topic, description, count))
        self._maybe_fail("deck")
        return make_deck(self.deck_size, self.clock(), prefix=f"fc-{len(self.calls)}")

    def generate_exam(self, topic, count=15):
        self.calls.append(("exam", topic, count))
        self._maybe_fail("exam")
        return list(self.questions)

    def generate_extension_nodes(self, path_title, last_node_title, count=5):
        self.calls.append(("extension", path_title, last_node_title, count))
        self._maybe_fail("extension")
        return [
            NodeStub(title=f"Advanced {i + 1}", description="Deeper", kind=NodeKind.CHALLENGE)
            for i in range(count)
        ]

    def generate_path(self, topic, level, goal, daily_commitment):
        self.calls.append(("path", topic, level, goal, daily_commitment))
        self._maybe_fail("path")
        return [
            NodeStub(title=f"{topic} {i + 1}", description=f"Level {i + 1}")
            for i in range(self.path_nodes)
        ]


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def producer(clock):
    return FakeContentProducer(clock=clock)


@pytest.fixture
def store():
    return InMemoryProgressStore()


@pytest.fixture
def policy():
    return ProgressionPolicy()


@pytest.fixture
def rewards(clock):
    return DailyStreakRewards(amount=5, clock=clock)


@pytest.fixture
def service(store, producer, policy, rewards, clock):
    return ProgressionService(
        store=store,
        producer=producer,
        policy=policy,
        rewards=rewards,
        clock=clock,
        rng=random.Random(7),
    )
