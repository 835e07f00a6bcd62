"""
Unit tests for node lifecycle transitions.

Covers mastery counting, the one-time exam unlock, pass/fail completion and
the derived status of each node in a path.
"""
from dataclasses import replace

import pytest

from conftest import START, make_deck
from skilltree.core.errors import PreconditionViolation
from skilltree.learning.models import Node, Path, Rating
from skilltree.learning.node_state import (
    NodeStateMachine,
    NodeStatus,
    count_mastered,
    is_exam_ready,
    is_passing_score,
    node_status,
)
from skilltree.learning.policy import ProgressionPolicy
from skilltree.learning.srs import next_state


def _path(count: int = 3) -> Path:
    nodes = [
        Node(id=f"n{i}", title=f"Node {i}", description="", locked=i > 0)
        for i in range(count)
    ]
    return Path(id="lp1", owner_id="ada", title="Chess", topic="Chess", nodes=nodes)


def _rate(machine: NodeStateMachine, node: Node, card_id: str, rating: Rating):
    card = node.find_card(card_id)
    return machine.apply_review(node, card_id, next_state(card, rating, START), START)


@pytest.fixture
def machine():
    return NodeStateMachine(ProgressionPolicy(mastery_threshold=20))


@pytest.fixture
def studied_node(machine):
    node = Node(id="n0", title="Openings", description="", locked=False)
    machine.attach_deck(node, make_deck(30))
    return node


class TestMastery:
    def test_count_mastered_counts_cards_out_of_box_zero(self):
        deck = make_deck(5)
        deck[0] = replace(deck[0], box=1)
        deck[3] = replace(deck[3], box=4)

        assert count_mastered(deck) == 2

    def test_attach_deck_rejects_second_deck(self, machine, studied_node):
        with pytest.raises(PreconditionViolation):
            machine.attach_deck(studied_node, make_deck(3))

    def test_attach_deck_rejects_empty_deck(self, machine):
        node = Node(id="n0", title="Openings", description="")
        with pytest.raises(PreconditionViolation):
            machine.attach_deck(node, [])

    def test_easy_rating_raises_mastered_count(self, machine, studied_node):
        outcome = _rate(machine, studied_node, "card-0", Rating.EASY)

        assert outcome.mastered_count == 1
        assert outcome.newly_mastered is True
        assert outcome.card.last_reviewed_at == START
        assert studied_node.find_card("card-0").box == 1

    def test_hard_rating_lowers_mastered_count(self, machine, studied_node):
        _rate(machine, studied_node, "card-0", Rating.EASY)
        outcome = _rate(machine, studied_node, "card-0", Rating.HARD)

        assert outcome.mastered_count == 0
        assert outcome.newly_mastered is False

    def test_second_easy_is_not_newly_mastered(self, machine, studied_node):
        _rate(machine, studied_node, "card-0", Rating.EASY)
        outcome = _rate(machine, studied_node, "card-0", Rating.EASY)

        assert outcome.newly_mastered is False
        assert outcome.mastered_count == 1

    def test_unknown_card_raises(self, machine, studied_node):
        card = studied_node.deck[0]
        with pytest.raises(PreconditionViolation):
            machine.apply_review(studied_node, "missing", next_state(card, Rating.EASY, START), START)


class TestExamUnlock:
    def test_unlocks_once_at_threshold(self, machine, studied_node):
        fired = []
        for i in range(25):
            outcome = _rate(machine, studied_node, f"card-{i}", Rating.EASY)
            fired.append(outcome.exam_unlocked_now)

        assert fired.count(True) == 1
        assert fired.index(True) == 19
        assert studied_node.exam_unlocked is True

    def test_unlock_survives_mastery_dropping(self, machine, studied_node):
        for i in range(20):
            _rate(machine, studied_node, f"card-{i}", Rating.EASY)
        for i in range(5):
            _rate(machine, studied_node, f"card-{i}", Rating.HARD)

        assert studied_node.mastered_count == 15
        assert studied_node.exam_unlocked is True
        assert is_exam_ready(studied_node, 20)

    def test_19_mastered_is_not_exam_ready(self, machine, studied_node):
        for i in range(19):
            _rate(machine, studied_node, f"card-{i}", Rating.EASY)

        assert not is_exam_ready(studied_node, 20)
        with pytest.raises(PreconditionViolation):
            machine.require_exam_ready(studied_node)


class TestCompletion:
    @pytest.mark.parametrize(
        "score, passed",
        [(0.0, False), (39.9, False), (40.0, True), (100.0, True)],
    )
    def test_pass_threshold_is_inclusive(self, score, passed):
        assert is_passing_score(score, 40.0) is passed

    def test_pass_completes_and_unlocks_successor(self, machine):
        path = _path(3)

        outcome = machine.complete(path, "n0", 40.0)

        assert outcome.passed and outcome.newly_completed
        assert outcome.unlocked_node_id == "n1"
        assert path.nodes[0].completed
        assert not path.nodes[1].locked
        assert path.nodes[2].locked

    def test_fail_changes_nothing_but_score(self, machine):
        path = _path(3)

        outcome = machine.complete(path, "n0", 39.9)

        assert outcome.passed is False
        assert not path.nodes[0].completed
        assert path.nodes[1].locked
        assert path.nodes[0].exam_score == 39.9

    def test_repeated_completion_is_idempotent(self, machine):
        path = _path(2)
        machine.complete(path, "n0", 80.0)

        again = machine.complete(path, "n0", 60.0)

        assert again.passed and not again.newly_completed
        assert path.nodes[0].exam_score == 80.0
        assert not path.nodes[1].locked

    def test_last_node_has_no_successor(self, machine):
        path = _path(2)
        path.nodes[1].locked = False

        outcome = machine.complete(path, "n1", 90.0)

        assert outcome.is_last_node
        assert outcome.unlocked_node_id is None

    def test_locked_node_cannot_be_completed(self, machine):
        path = _path(3)

        with pytest.raises(PreconditionViolation):
            machine.complete(path, "n1", 90.0)

        assert not path.nodes[1].completed
        assert path.nodes[1].exam_score is None
        assert path.nodes[2].locked

    def test_unknown_node_raises(self, machine):
        with pytest.raises(PreconditionViolation):
            machine.complete(_path(2), "nope", 50.0)


class TestNodeStatus:
    def test_fresh_path(self):
        path = _path(3)

        assert node_status(path, 0) == NodeStatus.READY
        assert node_status(path, 1) == NodeStatus.LOCKED
        assert node_status(path, 2) == NodeStatus.LOCKED

    def test_first_node_is_open_even_if_flag_says_locked(self):
        path = _path(2)
        path.nodes[0].locked = True

        assert node_status(path, 0) == NodeStatus.READY

    def test_exam_states(self):
        path = _path(2)
        path.nodes[0].exam_unlocked = True

        assert node_status(path, 0) == NodeStatus.EXAM_READY
        assert node_status(path, 0, exam_in_progress=True) == NodeStatus.EXAM_IN_PROGRESS

    def test_completed_wins(self, machine):
        path = _path(2)
        machine.complete(path, "n0", 75.0)

        assert node_status(path, 0, exam_in_progress=True) == NodeStatus.COMPLETED
        assert node_status(path, 1) == NodeStatus.READY
