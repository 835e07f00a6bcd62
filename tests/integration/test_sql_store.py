"""
Integration Tests for the SQLAlchemy progress store.

Runs against in-memory SQLite so no database server is needed.
"""
from dataclasses import replace
from datetime import timedelta

import pytest

from conftest import CORRECT_ANSWERS, START, make_deck
from skilltree.core.errors import PathNotFound
from skilltree.db.database import create_store_engine
from skilltree.db.models import LearningPathRecord
from skilltree.db.sql_store import SqlProgressStore
from skilltree.learning.models import Node, Path, Rating
from skilltree.learning.progression_service import ProgressionService

pytestmark = pytest.mark.integration


@pytest.fixture
def sql_store():
    engine = create_store_engine("sqlite://")
    yield SqlProgressStore(engine)
    engine.dispose()


def _path(path_id: str, owner: str = "ada", offset_days: int = 0) -> Path:
    deck = make_deck(3)
    deck[1] = replace(deck[1], box=2, last_reviewed_at=START)
    node = Node(id=f"{path_id}-n0", title="Openings", description="Principles",
                locked=False, deck=deck, mastered_count=1)
    return Path(id=path_id, owner_id=owner, title="Chess", topic="Chess", nodes=[node],
                created_at=START + timedelta(days=offset_days))


def test_save_then_load_returns_equal_aggregate(sql_store):
    path = _path("lp1")

    sql_store.save_path(path)

    assert sql_store.load_path("lp1") == path


def test_unknown_path_raises(sql_store):
    with pytest.raises(PathNotFound) as exc:
        sql_store.load_path("nope")
    assert exc.value.path_id == "nope"


def test_save_is_an_upsert(sql_store):
    path = _path("lp1")
    sql_store.save_path(path)

    path.nodes.append(Node(id="lp1-n1", title="Tactics", description=""))
    path.nodes[0].completed = True
    sql_store.save_path(path)

    loaded = sql_store.load_path("lp1")
    assert len(loaded.nodes) == 2
    assert loaded.nodes[0].completed
    with sql_store._factory() as session:
        assert session.query(LearningPathRecord).count() == 1
        assert session.get(LearningPathRecord, "lp1").node_count == 2


def test_list_paths_filters_by_owner_oldest_first(sql_store):
    sql_store.save_path(_path("lp-new", offset_days=2))
    sql_store.save_path(_path("lp-old", offset_days=0))
    sql_store.save_path(_path("lp-bob", owner="bob"))

    assert [p.id for p in sql_store.list_paths("ada")] == ["lp-old", "lp-new"]
    assert [p.id for p in sql_store.list_paths("bob")] == ["lp-bob"]
    assert sql_store.list_paths("carol") == []


def test_service_over_sql_store(sql_store, producer, policy, clock):
    """A full node cycle survives reloads from the database."""
    service = ProgressionService(store=sql_store, producer=producer, policy=policy, clock=clock)
    path = service.create_path("ada", "Chess")
    node_id = path.nodes[0].id

    queue = service.start_session("ada", path.id, node_id)
    for card in queue.cards[:20]:
        service.rate_card(queue, card.id, Rating.EASY)

    attempt = service.start_exam("ada", path.id, node_id)
    for question_id, answer in CORRECT_ANSWERS.items():
        service.answer_question(attempt, question_id, answer)
    result = service.finish_exam(attempt)

    stored = sql_store.load_path(path.id)
    assert result.passed
    assert stored.nodes[0].mastered_count == 20
    assert stored.nodes[0].exam_unlocked
    assert stored.nodes[0].completed
    assert not stored.nodes[1].locked
    assert stored.nodes[0].deck[0].next_review_at == START + timedelta(hours=4)
