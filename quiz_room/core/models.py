"""Domain models for the classroom quiz platform."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class QuizStatus(str, Enum):
    """Lifecycle of a quiz relative to its scheduling window."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"


class Role(str, Enum):
    FACULTY = "faculty"
    STUDENT = "student"


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with exactly four options (A-D)."""

    question_text: str
    options: tuple[str, ...]
    correct_option_index: int
    explanation: str = ""


@dataclass(frozen=True, slots=True)
class Quiz:
    """Scheduled quiz belonging to one room."""

    id: str
    title: str
    room_id: str
    document_id: str
    question_count: int
    start_at: datetime
    end_at: datetime
    duration_minutes: int
    created_by: str


@dataclass(frozen=True, slots=True)
class Submission:
    """Finalized attempt of one student at one quiz."""

    quiz_id: str
    student_id: str
    answers: tuple[int, ...]
    score: int
    bucket: str
    submitted_at: datetime


@dataclass(frozen=True, slots=True)
class LeaderboardRecord:
    """Stored leaderboard write, appended once per submission."""

    quiz_id: str
    student_id: str
    display_name: str
    score: int
    submitted_at: datetime


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    """Ranked row derived from leaderboard records."""

    student_id: str
    display_name: str
    score: int
    submitted_at: datetime
    rank: int


@dataclass(frozen=True, slots=True)
class Document:
    """Study material uploaded to a room, optionally gated behind a quiz."""

    id: str
    title: str
    owner_id: str
    room_id: str
    storage_location: str
    created_at: datetime
    linked_quiz_id: str | None = None


@dataclass(slots=True)
class Room:
    """Faculty-scoped group of students; the id doubles as the join code."""

    id: str
    name: str
    faculty_id: str
    created_at: datetime
    student_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UserProfile:
    user_id: str
    display_name: str
    role: Role
    room_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Identity of the caller, passed explicitly into every operation."""

    user_id: str
    display_name: str
    role: Role
    room_ids: frozenset[str] = frozenset()

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "RequestContext":
        return cls(
            user_id=profile.user_id,
            display_name=profile.display_name,
            role=profile.role,
            room_ids=frozenset(profile.room_ids),
        )

    def is_member_of(self, room_id: str) -> bool:
        return room_id in self.room_ids
