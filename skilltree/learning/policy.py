"""
Progression rules shared by the node state machine, study queue and service.
"""
from __future__ import annotations

from dataclasses import dataclass

from skilltree.config import Settings, get_settings


@dataclass(frozen=True)
class ProgressionPolicy:
    """Thresholds and batch sizes that govern a learner's progress."""

    mastery_threshold: int = 20
    pass_threshold: float = 40.0
    deck_size: int = 30
    exam_size: int = 15
    extension_size: int = 5
    review_fallback_sample: int = 10

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ProgressionPolicy":
        settings = settings or get_settings()
        return cls(
            mastery_threshold=settings.mastery_threshold,
            pass_threshold=settings.pass_threshold,
            deck_size=settings.deck_size,
            exam_size=settings.exam_size,
            extension_size=settings.extension_size,
            review_fallback_sample=settings.review_fallback_sample,
        )
