"""
Content Producer - generates decks, exams and path nodes.

ContentProducer is the port the progression service depends on.
GeminiContentProducer implements it with Google Gemini in JSON mode.

Every call either returns a complete, validated result or raises
GenerationFailed. Nothing is partially applied.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Callable, Protocol, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from skilltree.config import get_settings
from skilltree.core import utc_now
from skilltree.core.errors import GenerationFailed
from skilltree.generation.prompts import (
    SYSTEM_PROMPT,
    deck_prompt,
    exam_prompt,
    extension_prompt,
    path_prompt,
)
from skilltree.generation.schemas import DeckPayload, ExamPayload, NodePlanPayload
from skilltree.learning.models import Card, NodeStub, new_id
from skilltree.quiz.models import ExamQuestion

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class ContentProducer(Protocol):
    """Generative content collaborator."""

    def generate_deck(self, topic: str, description: str, count: int = 30) -> list[Card]:
        ...

    def generate_exam(self, topic: str, count: int = 15) -> list[ExamQuestion]:
        ...

    def generate_extension_nodes(
        self, path_title: str, last_node_title: str, count: int = 5
    ) -> list[NodeStub]:
        ...

    def generate_path(
        self, topic: str, level: str, goal: str, daily_commitment: str
    ) -> list[NodeStub]:
        ...


def extract_json(text: str) -> Any:
    """Parse a JSON document from a model response, tolerating code fences."""
    text = text.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    code_match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    if code_match:
        return json.loads(code_match.group(1).strip())

    obj_match = re.search(r"\{[\s\S]*\}", text)
    if obj_match:
        return json.loads(obj_match.group(0))

    raise json.JSONDecodeError("No JSON object found", text, 0)


class GeminiContentProducer:
    """
    ContentProducer backed by Gemini.

    Generated ids are discarded and replaced with local ones (fc_, ex_, node_)
    so nothing the model invents can collide with stored ids.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        temperature: float | None = None,
        client: Any = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the producer.

        Args:
            api_key: Gemini API key (uses settings if not provided)
            model_name: Model to use (uses settings if not provided)
            temperature: Sampling temperature (uses settings if not provided)
            client: Pre-built model object exposing generate_content()
            clock: Time source for new cards' first review
        """
        settings = get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.model_name = model_name or settings.ai_model
        self.temperature = settings.ai_temperature if temperature is None else temperature
        self._client = client
        self._clock = clock

    @property
    def client(self) -> Any:
        """Lazy-load Gemini client."""
        if self._client is None:
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._client = genai.GenerativeModel(
                model_name=self.model_name,
                system_instruction=SYSTEM_PROMPT,
            )
        return self._client

    # =========================================================================
    # ContentProducer
    # =========================================================================

    def generate_deck(self, topic: str, description: str, count: int = 30) -> list[Card]:
        payload = self._generate("deck", deck_prompt(topic, description, count), DeckPayload)
        now = self._clock()
        cards = [
            Card(id=new_id("fc"), front=c.front, back=c.back, box=0, next_review_at=now)
            for c in payload.cards
        ]
        logger.info(f"Generated {len(cards)} flashcards for '{topic}'")
        return cards

    def generate_exam(self, topic: str, count: int = 15) -> list[ExamQuestion]:
        payload = self._generate("exam", exam_prompt(topic, count), ExamPayload)
        questions = [
            ExamQuestion(
                id=new_id("ex"),
                kind=q.type,
                prompt=q.question,
                correct_answer=q.correct_answer,
                options=list(q.options),
                explanation=q.explanation,
            )
            for q in payload.questions
        ]
        logger.info(f"Generated {len(questions)} exam questions for '{topic}'")
        return questions

    def generate_extension_nodes(
        self, path_title: str, last_node_title: str, count: int = 5
    ) -> list[NodeStub]:
        prompt = extension_prompt(path_title, last_node_title, count)
        payload = self._generate("extension", prompt, NodePlanPayload)
        return [NodeStub(title=n.title, description=n.description, kind=n.type) for n in payload.nodes]

    def generate_path(
        self, topic: str, level: str, goal: str, daily_commitment: str
    ) -> list[NodeStub]:
        prompt = path_prompt(topic, level, goal, daily_commitment)
        payload = self._generate("path", prompt, NodePlanPayload)
        return [NodeStub(title=n.title, description=n.description, kind=n.type) for n in payload.nodes]

    # =========================================================================
    # Internals
    # =========================================================================

    def _generate(self, operation: str, prompt: str, model: type[PayloadT]) -> PayloadT:
        """Call Gemini and validate the JSON response against `model`."""
        if self._client is None and not self.api_key:
            raise GenerationFailed(operation, "Gemini API key is not configured")

        try:
            response = self.client.generate_content(
                prompt,
                generation_config={
                    "temperature": self.temperature,
                    "response_mime_type": "application/json",
                },
            )
            text = response.text
        except Exception as e:  # SDK raises many unrelated types (auth, quota, network)
            logger.error(f"Gemini {operation} request failed: {e}")
            raise GenerationFailed(operation, str(e)) from e

        if not text or not text.strip():
            raise GenerationFailed(operation, "empty response")

        try:
            return model.model_validate(extract_json(text))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Rejected malformed {operation} payload: {e}")
            raise GenerationFailed(operation, "malformed response") from e
