"""Exceptions raised by the quiz platform core."""

from __future__ import annotations

from enum import Enum


class QuizRoomError(Exception):
    """Base class for all recoverable quiz platform errors."""


class IneligibleReason(str, Enum):
    WINDOW_NOT_ACTIVE = "quiz is not currently open"
    ALREADY_SUBMITTED = "quiz already submitted"
    SESSION_ACTIVE = "a session for this quiz is already in progress"
    NOT_A_MEMBER = "student is not a member of this room"


class IneligibleToStart(QuizRoomError):
    """Raised when a quiz session may not be started."""

    def __init__(self, reason: IneligibleReason) -> None:
        super().__init__(reason.value)
        self.reason = reason


class InvalidAnswerIndex(QuizRoomError):
    """Raised for an out-of-range question or option index."""


class DuplicateSubmission(QuizRoomError):
    """Raised when a submission already exists for a (quiz, student) pair."""

    def __init__(self, quiz_id: str, student_id: str) -> None:
        super().__init__(f"Submission for quiz {quiz_id} by {student_id} already exists.")
        self.quiz_id = quiz_id
        self.student_id = student_id


class GenerationFailed(QuizRoomError):
    """Raised when the question generator fails or returns unusable output."""


class StorageUnavailable(QuizRoomError):
    """Raised by stores when the backing persistence cannot be reached."""


class NotFound(QuizRoomError):
    pass


class RoomNotFound(NotFound):
    pass


class QuizNotFound(NotFound):
    pass


class UserNotFound(NotFound):
    pass


class AlreadyMember(QuizRoomError):
    pass


class PermissionDenied(QuizRoomError):
    pass


class SessionNotFound(NotFound):
    pass
