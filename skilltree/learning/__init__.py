"""
Learning Path Progression Engine.

Components:
- srs: Leitner scheduler computing a card's next review
- StudyQueue: rotation queue for one flashcard sitting
- NodeStateMachine: node lifecycle and mastery/unlock predicates
- path_extension: appends generated nodes once a path's end is passed
- ProgressionService: facade over store and content producer
"""
from skilltree.learning.models import (
    Card,
    Node,
    NodeKind,
    NodeStub,
    Path,
    Rating,
    StudyMode,
)
from skilltree.learning.policy import ProgressionPolicy
from skilltree.learning.node_state import (
    NodeStateMachine,
    NodeStatus,
    is_exam_ready,
    is_unlocked,
    node_status,
)
from skilltree.learning.study_queue import StudyQueue
from skilltree.learning.rewards import DailyStreakRewards, NoRewards, RewardHook
from skilltree.learning.progression_service import (
    ExamResult,
    ProgressionService,
    RatingResult,
)

__all__ = [
    # Main facade
    "ProgressionService",
    "RatingResult",
    "ExamResult",
    # Components
    "NodeStateMachine",
    "StudyQueue",
    "ProgressionPolicy",
    "DailyStreakRewards",
    "NoRewards",
    "RewardHook",
    # Predicates
    "is_exam_ready",
    "is_unlocked",
    "node_status",
    # Data models
    "Card",
    "Node",
    "NodeStub",
    "Path",
    # Enums
    "NodeKind",
    "NodeStatus",
    "Rating",
    "StudyMode",
]
