"""
Path Extension Protocol.

When the last node of a path is passed, the path grows: new node stubs are
requested from the content producer and appended in order. The first
appended node opens immediately, the rest wait behind it. Existing nodes are
never touched, and appended nodes start with an empty deck that is generated
on first study.
"""

from __future__ import annotations

from loguru import logger

from skilltree.core.errors import PreconditionViolation
from skilltree.learning.models import Node, NodeStub, Path


def require_extendable(path: Path) -> Node:
    """
    Check that a path may grow and return its current last node.

    A path is extendable once its last node has been completed.
    """
    last = path.last_node
    if last is None:
        raise PreconditionViolation(f"Path {path.id} has no nodes to extend from")
    if not last.completed:
        raise PreconditionViolation(
            f"Path {path.id} can only be extended after '{last.title}' is completed"
        )
    return last


def build_nodes(stubs: list[NodeStub], first_unlocked: bool) -> list[Node]:
    """Turn producer stubs into fresh nodes; only the first may start unlocked."""
    return [
        Node.from_stub(stub, locked=not (first_unlocked and i == 0))
        for i, stub in enumerate(stubs)
    ]


def append_nodes(path: Path, stubs: list[NodeStub]) -> list[Node]:
    """
    Append new nodes built from `stubs` to the end of `path`.

    Args:
        path: Path to grow (mutated in place)
        stubs: Node outlines in the order they should appear

    Returns:
        The appended nodes
    """
    if not stubs:
        raise PreconditionViolation("Cannot extend a path with zero nodes")

    new_nodes = build_nodes(stubs, first_unlocked=True)
    path.nodes.extend(new_nodes)

    logger.info(
        f"Path {path.id} extended by {len(new_nodes)} nodes "
        f"(now {len(path.nodes)}), first new node: {new_nodes[0].title}"
    )
    return new_nodes
