"""Per-quiz performance statistics for the faculty dashboard."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from quiz_room.constants.quiz_constants import UNKNOWN_STUDENT_NAME
from quiz_room.core.models import Quiz, Room, Submission
from quiz_room.core.scorer import average_score, round_half_up


@dataclass(frozen=True, slots=True)
class SubmissionRow:
    """Immutable snapshot of one student's result."""

    student_id: str
    student_name: str
    score: int
    bucket: str
    submitted_at: datetime


@dataclass(frozen=True, slots=True)
class QuizPerformance:
    quiz_id: str
    room_id: str
    room_name: str
    title: str
    start_at: datetime
    total_students: int
    submitted_count: int
    average_score: int
    participation_percent: int
    submissions: tuple[SubmissionRow, ...]


def summarize_quiz(
    quiz: Quiz,
    room: Room,
    submissions: Iterable[Submission],
    resolve_name: Callable[[str], str | None],
) -> QuizPerformance:
    """Aggregate the submissions of one quiz, best scores first."""
    rows = sorted(
        (
            SubmissionRow(
                student_id=submission.student_id,
                student_name=resolve_name(submission.student_id) or UNKNOWN_STUDENT_NAME,
                score=submission.score,
                bucket=submission.bucket,
                submitted_at=submission.submitted_at,
            )
            for submission in submissions
        ),
        key=lambda row: (-row.score, row.submitted_at, row.student_id),
    )
    total_students = len(room.student_ids)
    participation = round_half_up(100 * len(rows), total_students) if total_students else 0
    return QuizPerformance(
        quiz_id=quiz.id,
        room_id=room.id,
        room_name=room.name,
        title=quiz.title,
        start_at=quiz.start_at,
        total_students=total_students,
        submitted_count=len(rows),
        average_score=average_score([row.score for row in rows]),
        participation_percent=participation,
        submissions=tuple(rows),
    )
