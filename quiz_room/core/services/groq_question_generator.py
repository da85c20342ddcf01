"""Question generator backed by a Groq-hosted chat model."""

from __future__ import annotations

from collections.abc import Mapping
import logging
import os
from typing import Any

from groq import Groq

from quiz_room.constants.generation_constants import (
    DEFAULT_GROQ_MODEL,
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    GROQ_API_KEY_ENV,
    GROQ_MODEL_ENV,
)
from quiz_room.core.errors import GenerationFailed
from quiz_room.core.models import Question
from quiz_room.core.question_generation import build_generation_prompt, parse_generated_questions

logger = logging.getLogger(__name__)


class GroqQuestionGenerator:
    """Sends the generation prompt to a chat model and parses its JSON reply."""

    def __init__(self, client: Any, model: str = DEFAULT_GROQ_MODEL) -> None:
        self._client = client
        self._model = model

    def generate(self, document_text: str, count: int) -> list[Question]:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": build_generation_prompt(document_text, count)}],
            temperature=GENERATION_TEMPERATURE,
            max_tokens=GENERATION_MAX_TOKENS,
        )
        if not response.choices:
            raise GenerationFailed("Question generator returned no choices.")
        content = response.choices[0].message.content or ""
        questions = parse_generated_questions(content)
        logger.info("Model %s returned %d questions", self._model, len(questions))
        return questions


def generator_from_env(environ: Mapping[str, str] | None = None) -> GroqQuestionGenerator | None:
    """Build a generator from ``GROQ_API_KEY``/``GROQ_MODEL``; None when no key is set."""
    env = os.environ if environ is None else environ
    api_key = env.get(GROQ_API_KEY_ENV, "").strip()
    if not api_key:
        return None
    model = env.get(GROQ_MODEL_ENV, "").strip() or DEFAULT_GROQ_MODEL
    return GroqQuestionGenerator(Groq(api_key=api_key), model=model)
