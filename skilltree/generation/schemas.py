"""
Validation models for generated content.

Gemini is asked for JSON; these models decide whether a response is usable.
Anything that fails validation is treated as a failed generation.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from skilltree.learning.models import NodeKind
from skilltree.quiz.models import QuestionKind


class GeneratedCard(BaseModel):
    model_config = ConfigDict(extra="ignore")

    front: str = Field(min_length=1)
    back: str = Field(min_length=1)

    @field_validator("front", "back")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class DeckPayload(BaseModel):
    cards: list[GeneratedCard] = Field(min_length=1)


class GeneratedQuestion(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: QuestionKind
    question: str = Field(min_length=1)
    options: list[str] = Field(default_factory=list)
    correct_answer: str = Field(alias="correctAnswer", min_length=1)
    explanation: str | None = None

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _coerce_answer(cls, value: object) -> object:
        # MCQ indexes sometimes come back as integers
        if isinstance(value, int):
            return str(value)
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_shape(self) -> "GeneratedQuestion":
        if self.type == QuestionKind.MCQ:
            if len(self.options) < 2:
                raise ValueError("mcq needs at least two options")
            if not self.correct_answer.isdigit() or int(self.correct_answer) >= len(self.options):
                raise ValueError("mcq correctAnswer must be a valid option index")
        else:
            self.options = []
        return self


class ExamPayload(BaseModel):
    questions: list[GeneratedQuestion] = Field(min_length=1)


class GeneratedNode(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    description: str = ""
    type: NodeKind = NodeKind.THEORY


class NodePlanPayload(BaseModel):
    nodes: list[GeneratedNode] = Field(min_length=1)
