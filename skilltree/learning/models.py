"""
Data model for learning paths.

A Path owns an ordered list of Nodes; each Node owns a deck of Cards.
The Path is the persistence aggregate: stores read and write it whole.

Nodes keep their lifecycle as plain booleans (locked, completed, exam_unlocked)
for storage simplicity. Only node_state and path_extension mutate them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from skilltree.core import utc_now


class NodeKind(str, Enum):
    """Pedagogical flavour of a node."""

    THEORY = "theory"
    PRACTICE = "practice"
    CHALLENGE = "challenge"


class Rating(str, Enum):
    """Learner's self-assessed difficulty for a flashcard."""

    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"


class StudyMode(str, Enum):
    """How a study queue is drawn from a deck."""

    NEW = "new"  # Unseen or due cards
    REVIEW = "review"  # Whole deck regardless of schedule


def new_id(prefix: str) -> str:
    """Generate a short unique id with a readable prefix."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class Card:
    """A single flashcard and its Leitner scheduling record."""

    id: str
    front: str
    back: str
    box: int = 0
    next_review_at: datetime = field(default_factory=utc_now)
    last_reviewed_at: datetime | None = None

    @property
    def is_mastered(self) -> bool:
        return self.box > 0

    def is_due(self, now: datetime) -> bool:
        return self.next_review_at <= now

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "front": self.front,
            "back": self.back,
            "box": self.box,
            "next_review_at": _iso(self.next_review_at),
            "last_reviewed_at": _iso(self.last_reviewed_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Card":
        return cls(
            id=data["id"],
            front=data["front"],
            back=data["back"],
            box=int(data.get("box", 0)),
            next_review_at=_parse(data.get("next_review_at")) or utc_now(),
            last_reviewed_at=_parse(data.get("last_reviewed_at")),
        )


@dataclass
class NodeStub:
    """A node outline returned by the content producer, before it joins a path."""

    title: str
    description: str
    kind: NodeKind = NodeKind.THEORY


@dataclass
class Node:
    """One level of a learning path, gated by flashcard mastery and an exam."""

    id: str
    title: str
    description: str
    kind: NodeKind = NodeKind.THEORY
    locked: bool = True
    completed: bool = False
    deck: list[Card] = field(default_factory=list)
    mastered_count: int = 0
    exam_unlocked: bool = False
    exam_score: float | None = None

    @classmethod
    def from_stub(cls, stub: NodeStub, locked: bool = True) -> "Node":
        """Create a fresh node with an empty deck from a producer stub."""
        return cls(
            id=new_id("node"),
            title=stub.title,
            description=stub.description,
            kind=stub.kind,
            locked=locked,
        )

    def find_card(self, card_id: str) -> Card | None:
        for card in self.deck:
            if card.id == card_id:
                return card
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "kind": self.kind.value,
            "locked": self.locked,
            "completed": self.completed,
            "deck": [card.to_dict() for card in self.deck],
            "mastered_count": self.mastered_count,
            "exam_unlocked": self.exam_unlocked,
            "exam_score": self.exam_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            kind=NodeKind(data.get("kind", NodeKind.THEORY.value)),
            locked=bool(data.get("locked", True)),
            completed=bool(data.get("completed", False)),
            deck=[Card.from_dict(c) for c in data.get("deck", [])],
            mastered_count=int(data.get("mastered_count", 0)),
            exam_unlocked=bool(data.get("exam_unlocked", False)),
            exam_score=data.get("exam_score"),
        )


@dataclass
class Path:
    """An ordered, append-only sequence of nodes owned by one learner."""

    id: str
    owner_id: str
    title: str
    topic: str
    nodes: list[Node] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)

    # Personalization captured at creation time
    target_level: str = "Beginner"
    goal: str = ""
    daily_commitment: str = ""

    def index_of(self, node_id: str) -> int:
        """Position of a node in the path, or -1 if absent."""
        for i, node in enumerate(self.nodes):
            if node.id == node_id:
                return i
        return -1

    def find_node(self, node_id: str) -> Node | None:
        index = self.index_of(node_id)
        return self.nodes[index] if index >= 0 else None

    @property
    def last_node(self) -> Node | None:
        return self.nodes[-1] if self.nodes else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "topic": self.topic,
            "nodes": [node.to_dict() for node in self.nodes],
            "created_at": _iso(self.created_at),
            "target_level": self.target_level,
            "goal": self.goal,
            "daily_commitment": self.daily_commitment,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Path":
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            title=data["title"],
            topic=data.get("topic", ""),
            nodes=[Node.from_dict(n) for n in data.get("nodes", [])],
            created_at=_parse(data.get("created_at")) or utc_now(),
            target_level=data.get("target_level", "Beginner"),
            goal=data.get("goal", ""),
            daily_commitment=data.get("daily_commitment", ""),
        )
