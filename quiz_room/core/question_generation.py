"""Contract and helpers for generating question banks from document text.

The generator itself is an external collaborator (typically an LLM client).
It receives the document text and the number of questions and returns
question records. Model output arrives as a JSON array, optionally wrapped in
a markdown code fence:

    [
      {
        "questionText": "What does CPU stand for?",
        "options": ["Central Processing Unit", "...", "...", "..."],
        "correctOption": 0,
        "explanation": "The CPU is the central processing unit."
      }
    ]

Every failure mode (network, quota, malformed output, too few questions) is
surfaced as ``GenerationFailed`` so a quiz is never created with an empty or
partial question bank.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
import re
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from quiz_room.core.errors import GenerationFailed
from quiz_room.core.models import Question
from quiz_room.core.services.quiz_repository import prepare_question

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class QuestionGenerator(Protocol):
    def generate(self, document_text: str, count: int) -> Sequence[Question]: ...


class GeneratedQuestion(BaseModel):
    """Schema of one question in the model's JSON output."""

    model_config = ConfigDict(populate_by_name=True)

    question_text: str = Field(alias="questionText", min_length=1)
    options: list[str] = Field(min_length=4, max_length=4)
    correct_option: int = Field(alias="correctOption", ge=0, le=3)
    explanation: str = ""

    def to_question(self) -> Question:
        return Question(
            question_text=self.question_text,
            options=tuple(self.options),
            correct_option_index=self.correct_option,
            explanation=self.explanation,
        )


_GENERATED_QUESTIONS = TypeAdapter(list[GeneratedQuestion])


def build_generation_prompt(document_text: str, count: int) -> str:
    return (
        f"Based on the following document content, generate exactly {count} "
        "multiple choice questions.\n\n"
        f"Document content:\n{document_text}\n\n"
        "Please format your response as a JSON array where each question has:\n"
        "- questionText: string\n"
        "- options: array of 4 options (A, B, C, D)\n"
        "- correctOption: number (0-3 index)\n"
        "- explanation: string explaining why the answer is correct\n\n"
        "Make sure questions cover different aspects of the content and vary in difficulty."
    )


def parse_generated_questions(raw_text: str) -> list[Question]:
    """Parse the model's JSON answer into questions."""
    cleaned = _CODE_FENCE.sub("", raw_text).strip()
    if not cleaned:
        raise GenerationFailed("Question generator returned an empty response.")
    try:
        parsed = _GENERATED_QUESTIONS.validate_json(cleaned)
    except ValidationError as exc:
        raise GenerationFailed(f"Malformed question generator output: {exc.error_count()} error(s).") from exc
    return [item.to_question() for item in parsed]


def generate_question_bank(
    generator: QuestionGenerator | None,
    document_text: str,
    count: int,
) -> tuple[Question, ...]:
    """Ask the generator for ``count`` questions and validate what comes back."""
    if count <= 0:
        raise ValueError("Number of questions must be positive.")
    if generator is None:
        raise GenerationFailed("No question generator is configured.")
    if not document_text.strip():
        raise GenerationFailed("Document text is empty; nothing to generate from.")

    try:
        generated = list(generator.generate(document_text, count))
    except GenerationFailed:
        raise
    except Exception as exc:
        logger.warning("Question generation failed: %s", exc)
        raise GenerationFailed("Failed to generate quiz questions.") from exc

    if len(generated) < count:
        raise GenerationFailed(
            f"Expected {count} questions but the generator returned {len(generated)}."
        )
    try:
        return tuple(prepare_question(question) for question in generated[:count])
    except ValueError as exc:
        raise GenerationFailed(f"Generated question is invalid: {exc}") from exc
