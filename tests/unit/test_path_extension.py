"""
Unit tests for appending nodes to a finished path.
"""
import pytest

from skilltree.core.errors import PreconditionViolation
from skilltree.learning.models import Node, NodeKind, NodeStub, Path
from skilltree.learning.path_extension import append_nodes, build_nodes, require_extendable


def _finished_path(count: int = 7) -> Path:
    nodes = [
        Node(id=f"n{i}", title=f"Node {i}", description="", locked=False, completed=True,
             exam_score=75.0)
        for i in range(count)
    ]
    return Path(id="lp1", owner_id="ada", title="Chess", topic="Chess", nodes=nodes)


def _stubs(count: int) -> list[NodeStub]:
    return [NodeStub(title=f"Advanced {i}", description="", kind=NodeKind.CHALLENGE)
            for i in range(count)]


def test_build_nodes_opens_only_first():
    nodes = build_nodes(_stubs(3), first_unlocked=True)

    assert [n.locked for n in nodes] == [False, True, True]
    assert all(n.deck == [] for n in nodes)
    assert len({n.id for n in nodes}) == 3


def test_build_nodes_can_start_fully_locked():
    assert all(n.locked for n in build_nodes(_stubs(2), first_unlocked=False))


def test_append_after_seven_nodes():
    path = _finished_path(7)
    before = [n.to_dict() for n in path.nodes]

    added = append_nodes(path, _stubs(5))

    assert len(path.nodes) == 12
    assert path.nodes[7] is added[0]
    assert path.nodes[7].locked is False
    assert all(n.locked for n in path.nodes[8:])
    assert all(n.kind == NodeKind.CHALLENGE for n in added)
    assert [n.to_dict() for n in path.nodes[:7]] == before


def test_append_rejects_no_stubs():
    with pytest.raises(PreconditionViolation):
        append_nodes(_finished_path(1), [])


def test_require_extendable_needs_completed_last_node():
    path = _finished_path(3)
    path.nodes[-1].completed = False

    with pytest.raises(PreconditionViolation):
        require_extendable(path)


def test_require_extendable_rejects_empty_path():
    with pytest.raises(PreconditionViolation):
        require_extendable(Path(id="lp0", owner_id="ada", title="Empty", topic="Empty"))


def test_require_extendable_returns_last_node():
    path = _finished_path(3)
    assert require_extendable(path).id == "n2"
