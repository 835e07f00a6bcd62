"""
SQLAlchemy-backed progress store.

Writes are upserts keyed by path id (last writer wins). Database errors are
logged and surfaced as StoreError; the in-memory aggregate the caller holds
is left as-is, ahead of the persisted copy.
"""

from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from loguru import logger

from skilltree.core.errors import PathNotFound, StoreError
from skilltree.db.database import create_store_engine, init_db, make_session_factory, session_scope
from skilltree.db.models import LearningPathRecord
from skilltree.learning.models import Path


class SqlProgressStore:
    """ProgressStore over any SQLAlchemy-supported database."""

    def __init__(self, engine: Engine | None = None, create_tables: bool = True):
        self.engine = engine or create_store_engine()
        self._factory = make_session_factory(self.engine)
        if create_tables:
            init_db(self.engine)

    def load_path(self, path_id: str) -> Path:
        try:
            with session_scope(self._factory) as session:
                record = session.get(LearningPathRecord, path_id)
                if record is None:
                    raise PathNotFound(path_id)
                return Path.from_dict(record.payload)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load path {path_id}: {e}")
            raise StoreError(f"Failed to load path {path_id}") from e

    def save_path(self, path: Path) -> None:
        payload = path.to_dict()
        try:
            with session_scope(self._factory) as session:
                record = session.get(LearningPathRecord, path.id)
                if record is None:
                    record = LearningPathRecord(id=path.id, created_at=path.created_at)
                    session.add(record)
                record.owner_id = path.owner_id
                record.title = path.title
                record.topic = path.topic
                record.node_count = len(path.nodes)
                record.payload = payload
        except SQLAlchemyError as e:
            logger.error(f"Failed to save path {path.id}: {e}")
            raise StoreError(f"Failed to save path {path.id}") from e

        logger.debug(f"Saved path {path.id} ({len(path.nodes)} nodes)")

    def list_paths(self, owner_id: str) -> list[Path]:
        query = (
            select(LearningPathRecord)
            .where(LearningPathRecord.owner_id == owner_id)
            .order_by(LearningPathRecord.created_at)
        )
        try:
            with session_scope(self._factory) as session:
                return [Path.from_dict(r.payload) for r in session.scalars(query)]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list paths for {owner_id}: {e}")
            raise StoreError(f"Failed to list paths for {owner_id}") from e
