"""
Exam question and attempt models.

ExamQuestion is a tagged union keyed by QuestionKind:
- MCQ: `options` holds the choices, `correct_answer` the 0-based index as a string
- FILL_GAP / SHORT_ANSWER: free text, `options` is empty
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class QuestionKind(str, Enum):
    """Supported exam question formats."""

    MCQ = "mcq"
    FILL_GAP = "fill_gap"
    SHORT_ANSWER = "short_answer"


@dataclass
class ExamQuestion:
    """A single exam item."""

    id: str
    kind: QuestionKind
    prompt: str
    correct_answer: str
    options: list[str] = field(default_factory=list)
    explanation: str | None = None

    @property
    def correct_text(self) -> str:
        """Human-readable expected answer (option text for MCQ)."""
        if self.kind == QuestionKind.MCQ and self.correct_answer.isdigit():
            index = int(self.correct_answer)
            if index < len(self.options):
                return self.options[index]
        return self.correct_answer


@dataclass
class QuestionResponse:
    """Outcome recorded for one answered question."""

    question_id: str
    is_correct: bool
    xp_awarded: int = 0


@dataclass
class ExamAttempt:
    """One sitting of a node exam. Ephemeral: only the final score is persisted."""

    attempt_id: str
    questions: list[ExamQuestion]
    learner_id: str = ""
    path_id: str = ""
    node_id: str = ""
    responses: list[QuestionResponse] = field(default_factory=list)
    combo: int = 0
    session_xp: int = 0
    finished: bool = False

    @property
    def answered_ids(self) -> set[str]:
        return {r.question_id for r in self.responses}

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.responses if r.is_correct)

    @property
    def next_question(self) -> ExamQuestion | None:
        """First unanswered question in presentation order."""
        answered = self.answered_ids
        for question in self.questions:
            if question.id not in answered:
                return question
        return None

    def find_question(self, question_id: str) -> ExamQuestion | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass
class AnswerOutcome:
    """Feedback for a single answer."""

    is_correct: bool
    combo_now: int
    xp_awarded: int
    expected_answer: str
    explanation: str | None = None


@dataclass
class ExamScore:
    """Final tally of an attempt, independent of any pass mark."""

    score_percent: float
    correct_count: int
    total_questions: int
    session_xp: int
