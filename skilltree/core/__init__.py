"""
Core primitives shared by every skilltree component.
"""
from datetime import datetime, timezone

from skilltree.core.errors import (
    GenerationFailed,
    PathNotFound,
    PreconditionViolation,
    ProgressionError,
    StoreError,
)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


__all__ = [
    "GenerationFailed",
    "PathNotFound",
    "PreconditionViolation",
    "ProgressionError",
    "StoreError",
    "utc_now",
]
