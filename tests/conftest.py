from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quiz_room.core.errors import StorageUnavailable
from quiz_room.core.models import Question, Quiz, Role
from quiz_room.core.quiz_manager import QuizManager
from quiz_room.core.services.stores import InMemoryLeaderboardStore, InMemorySubmissionStore

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = NOW) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class FakeGenerator:
    def __init__(self, questions: list[Question] | None = None, error: Exception | None = None) -> None:
        self.questions = questions
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def generate(self, document_text: str, count: int) -> list[Question]:
        self.calls.append((document_text, count))
        if self.error is not None:
            raise self.error
        if self.questions is not None:
            return list(self.questions)
        return make_questions(count)


class FlakySubmissionStore(InMemorySubmissionStore):
    """Submission store that fails while ``available`` is False."""

    def __init__(self) -> None:
        super().__init__()
        self.available = True

    def create_submission(self, submission):
        if not self.available:
            raise StorageUnavailable("submission store offline")
        super().create_submission(submission)


class FlakyLeaderboardStore(InMemoryLeaderboardStore):
    def __init__(self) -> None:
        super().__init__()
        self.available = True

    def record_entry(self, record):
        if not self.available:
            raise StorageUnavailable("leaderboard store offline")
        super().record_entry(record)


def make_questions(count: int) -> list[Question]:
    return [
        Question(
            question_text=f"Question {i + 1}?",
            options=("alpha", "beta", "gamma", "delta"),
            correct_option_index=i % 4,
            explanation=f"Because of reason {i + 1}.",
        )
        for i in range(count)
    ]


def make_quiz(
    question_count: int = 10,
    duration_minutes: int = 30,
    start_at: datetime = NOW - timedelta(hours=1),
    end_at: datetime = NOW + timedelta(hours=1),
    quiz_id: str = "quiz-1",
) -> Quiz:
    return Quiz(
        id=quiz_id,
        title="Cell Biology",
        room_id="room-1",
        document_id="doc-1",
        question_count=question_count,
        start_at=start_at,
        end_at=end_at,
        duration_minutes=duration_minutes,
        created_by="prof",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def manager(clock: FakeClock, generator: FakeGenerator) -> QuizManager:
    return QuizManager(clock=clock, generator=generator)


@pytest.fixture
def classroom(manager: QuizManager):
    """A faculty member owning one room with two students and an active quiz."""
    manager.register_user("prof", "Prof. Ada", Role.FACULTY)
    manager.register_user("s1", "Grace", Role.STUDENT)
    manager.register_user("s2", "Alan", Role.STUDENT)
    faculty = manager.get_context("prof")
    room = manager.create_room(faculty, "Biology 101")
    manager.join_room(manager.get_context("s1"), room.id)
    manager.join_room(manager.get_context("s2"), room.id)
    quiz = manager.create_quiz(
        manager.get_context("prof"),
        room_id=room.id,
        title="Cell Biology",
        document_text="Cells are the basic unit of life.",
        storage_location="documents/cells.pdf",
        question_count=4,
        start_at=NOW - timedelta(minutes=10),
        end_at=NOW + timedelta(hours=2),
        duration_minutes=1,
    )
    return {"room": room, "quiz": quiz}
