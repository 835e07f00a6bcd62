"""
Persistence for learning paths: the store port and its implementations.
"""
from skilltree.db.sql_store import SqlProgressStore
from skilltree.db.store import InMemoryProgressStore, ProgressStore

__all__ = [
    "InMemoryProgressStore",
    "ProgressStore",
    "SqlProgressStore",
]
