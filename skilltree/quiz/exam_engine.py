"""
Exam Engine - scores one exam attempt with streak combo XP.

Answer checking:
- mcq: the selected option index (as a string) must equal correct_answer exactly
- fill_gap / short_answer: both sides trimmed and lower-cased, then compared exactly

Combo XP:
Each correct answer awards BASE_XP + combo * COMBO_BONUS, where combo is the
streak length *before* this answer. A miss resets the streak to zero, so
correct x3, miss, correct yields 10, 12, 14, 0, 10.

The engine reports a percentage score only. Deciding whether that score
passes belongs to the node state machine.
"""

from __future__ import annotations

import uuid

from loguru import logger

from skilltree.core.errors import PreconditionViolation
from skilltree.quiz.models import (
    AnswerOutcome,
    ExamAttempt,
    ExamQuestion,
    ExamScore,
    QuestionKind,
    QuestionResponse,
)

BASE_XP = 10
COMBO_BONUS = 2


def normalize_text(value: str) -> str:
    return value.strip().lower()


def check_answer(question: ExamQuestion, answer: str | int) -> bool:
    """Grade a learner's answer for one question."""
    given = str(answer)

    if question.kind == QuestionKind.MCQ:
        return given == question.correct_answer
    elif question.kind == QuestionKind.FILL_GAP:
        return normalize_text(given) == normalize_text(question.correct_answer)
    elif question.kind == QuestionKind.SHORT_ANSWER:
        return normalize_text(given) == normalize_text(question.correct_answer)

    raise ValueError(f"Unsupported question kind: {question.kind}")


def xp_for_answer(is_correct: bool, combo_before: int) -> int:
    if not is_correct:
        return 0
    return BASE_XP + combo_before * COMBO_BONUS


class ExamEngine:
    """Runs exam attempts over an ordered list of questions."""

    def start(
        self,
        questions: list[ExamQuestion],
        learner_id: str = "",
        path_id: str = "",
        node_id: str = "",
    ) -> ExamAttempt:
        """Open a new attempt. Questions are presented in the order given."""
        if not questions:
            raise PreconditionViolation("An exam needs at least one question")

        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise PreconditionViolation("Exam question ids must be unique")

        attempt = ExamAttempt(
            attempt_id=f"att_{uuid.uuid4().hex[:12]}",
            questions=list(questions),
            learner_id=learner_id,
            path_id=path_id,
            node_id=node_id,
        )
        logger.debug(f"Exam attempt {attempt.attempt_id} started with {len(questions)} questions")
        return attempt

    def answer(self, attempt: ExamAttempt, question_id: str, answer: str | int) -> AnswerOutcome:
        """
        Grade one answer and update the attempt's combo and XP.

        Args:
            attempt: Open attempt
            question_id: Question being answered (each may be answered once)
            answer: Option index for mcq, free text otherwise

        Returns:
            AnswerOutcome with correctness, streak and XP for this answer
        """
        if attempt.finished:
            raise PreconditionViolation(f"Attempt {attempt.attempt_id} is already finished")

        question = attempt.find_question(question_id)
        if question is None:
            raise PreconditionViolation(f"Question {question_id} is not part of this exam")
        if question_id in attempt.answered_ids:
            raise PreconditionViolation(f"Question {question_id} was already answered")

        is_correct = check_answer(question, answer)
        xp = xp_for_answer(is_correct, attempt.combo)

        if is_correct:
            attempt.combo += 1
        else:
            attempt.combo = 0
        attempt.session_xp += xp
        attempt.responses.append(
            QuestionResponse(question_id=question_id, is_correct=is_correct, xp_awarded=xp)
        )

        logger.debug(
            f"Attempt {attempt.attempt_id} q={question_id} correct={is_correct} "
            f"combo={attempt.combo} xp+{xp}"
        )

        return AnswerOutcome(
            is_correct=is_correct,
            combo_now=attempt.combo,
            xp_awarded=xp,
            expected_answer=question.correct_text,
            explanation=question.explanation,
        )

    def finish(self, attempt: ExamAttempt) -> ExamScore:
        """Close the attempt. Unanswered questions count as incorrect."""
        if attempt.finished:
            raise PreconditionViolation(f"Attempt {attempt.attempt_id} is already finished")

        attempt.finished = True
        total = len(attempt.questions)
        correct = attempt.correct_count
        score = round(correct / total * 100, 1)

        logger.info(
            f"Attempt {attempt.attempt_id} finished: {correct}/{total} = {score}%, "
            f"xp={attempt.session_xp}"
        )

        return ExamScore(
            score_percent=score,
            correct_count=correct,
            total_questions=total,
            session_xp=attempt.session_xp,
        )
