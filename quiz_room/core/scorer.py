"""Scoring of finalized answer sheets."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from quiz_room.constants.quiz_constants import (
    BUCKET_FAIR,
    BUCKET_GOOD,
    BUCKET_NEEDS_IMPROVEMENT,
    FAIR_SCORE_THRESHOLD,
    GOOD_SCORE_THRESHOLD,
)
from quiz_room.core.models import Question


@dataclass(frozen=True, slots=True)
class ScoreResult:
    percent: int
    bucket: str
    correct_count: int


def bucket_for(percent: int) -> str:
    if percent >= GOOD_SCORE_THRESHOLD:
        return BUCKET_GOOD
    if percent >= FAIR_SCORE_THRESHOLD:
        return BUCKET_FAIR
    return BUCKET_NEEDS_IMPROVEMENT


def round_half_up(numerator: int, denominator: int) -> int:
    """Round a non-negative fraction to the nearest integer, halves away from zero."""
    return (2 * numerator + denominator) // (2 * denominator)


def score(answers: Sequence[int], questions: Sequence[Question]) -> ScoreResult:
    """Score answers against the question bank.

    Unset slots (-1) never equal a correct option index and count as wrong.
    """
    if not questions:
        raise ValueError("Cannot score a quiz without questions.")
    if len(answers) != len(questions):
        raise ValueError(
            f"Expected {len(questions)} answers, got {len(answers)}."
        )

    correct = sum(
        1
        for answer, question in zip(answers, questions)
        if answer == question.correct_option_index
    )
    percent = round_half_up(100 * correct, len(questions))
    return ScoreResult(percent=percent, bucket=bucket_for(percent), correct_count=correct)


def average_score(scores: Sequence[int]) -> int:
    if not scores:
        return 0
    return round_half_up(sum(scores), len(scores))
