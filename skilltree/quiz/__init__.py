"""
Node exams: question model and scoring engine.
"""
from skilltree.quiz.exam_engine import ExamEngine, check_answer
from skilltree.quiz.models import (
    AnswerOutcome,
    ExamAttempt,
    ExamQuestion,
    ExamScore,
    QuestionKind,
    QuestionResponse,
)

__all__ = [
    "AnswerOutcome",
    "ExamAttempt",
    "ExamEngine",
    "ExamQuestion",
    "ExamScore",
    "QuestionKind",
    "QuestionResponse",
    "check_answer",
]
