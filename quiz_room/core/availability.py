"""Time-window gating for quizzes and the documents linked to them."""

from __future__ import annotations

from datetime import datetime

from quiz_room.core.models import QuizStatus


def gate(now: datetime, start: datetime, end: datetime) -> QuizStatus:
    """Return the lifecycle state of a quiz window at ``now``.

    The window is half-open: ``start`` itself is active, ``end`` itself has ended.
    """
    if now < start:
        return QuizStatus.UPCOMING
    if now < end:
        return QuizStatus.ACTIVE
    return QuizStatus.ENDED


def is_document_unlocked(now: datetime, quiz_end: datetime | None) -> bool:
    """A document linked to a quiz stays locked until that quiz has ended."""
    if quiz_end is None:
        return True
    return now > quiz_end
