"""
SQLAlchemy table models for the progress store.

A learning path is stored as one row whose payload holds the serialized
aggregate (nodes and decks). Owner and titles are duplicated into columns
for listing without decoding the payload.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for skilltree tables."""
    pass


class LearningPathRecord(Base):
    """One learner's learning path aggregate."""

    __tablename__ = "learning_paths"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    topic: Mapped[str] = mapped_column(Text, default="")
    node_count: Mapped[int] = mapped_column(default=0)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )
