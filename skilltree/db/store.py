"""
Persistent store port for learning paths.

The Path is the aggregate root: every write stores the whole path, with its
nodes and decks, and the last writer wins.
"""

from __future__ import annotations

import copy
from typing import Protocol

from skilltree.core.errors import PathNotFound
from skilltree.learning.models import Path


class ProgressStore(Protocol):
    """Read/write access to learning path aggregates."""

    def load_path(self, path_id: str) -> Path:
        """Load a path or raise PathNotFound."""
        ...

    def save_path(self, path: Path) -> None:
        """Write the full path aggregate."""
        ...

    def list_paths(self, owner_id: str) -> list[Path]:
        """All paths owned by a learner, oldest first."""
        ...


class InMemoryProgressStore:
    """
    Dict-backed store.

    Copies on every read and write so callers never share objects with the
    stored state, matching the behaviour of a real database.
    """

    def __init__(self):
        self._paths: dict[str, Path] = {}

    def load_path(self, path_id: str) -> Path:
        if path_id not in self._paths:
            raise PathNotFound(path_id)
        return copy.deepcopy(self._paths[path_id])

    def save_path(self, path: Path) -> None:
        self._paths[path.id] = copy.deepcopy(path)

    def list_paths(self, owner_id: str) -> list[Path]:
        owned = [p for p in self._paths.values() if p.owner_id == owner_id]
        owned.sort(key=lambda p: p.created_at)
        return [copy.deepcopy(p) for p in owned]
