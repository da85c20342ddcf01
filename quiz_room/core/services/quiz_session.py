"""State machine for one student's timed attempt at one quiz."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging

from quiz_room.constants.quiz_constants import SECONDS_PER_MINUTE, UNSET_ANSWER
from quiz_room.core.clock import Clock
from quiz_room.core.errors import DuplicateSubmission, InvalidAnswerIndex, StorageUnavailable
from quiz_room.core.models import LeaderboardRecord, Question, Quiz, Submission
from quiz_room.core.scorer import score
from quiz_room.core.services.stores import LeaderboardStore, SubmissionStore

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class SubmitReason(str, Enum):
    MANUAL = "manual"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of a session for display."""

    quiz_id: str
    student_id: str
    state: SessionState
    current_index: int
    answers: tuple[int, ...]
    remaining_seconds: int
    started_at: datetime | None
    submission: Submission | None
    submit_reason: SubmitReason | None


class QuizSession:
    """Tracks position, answers and countdown of a single attempt.

    The countdown is advanced by explicit ``tick`` calls. Reaching zero
    submits with whatever answers are recorded, exactly like a manual submit.
    Finalizing goes through the submission store's create-once write, so two
    racing submits can never produce two submissions.
    """

    def __init__(
        self,
        quiz: Quiz,
        questions: Sequence[Question],
        student_id: str,
        display_name: str,
        submission_store: SubmissionStore,
        leaderboard_store: LeaderboardStore,
        clock: Clock,
    ) -> None:
        if len(questions) != quiz.question_count:
            raise ValueError("Question bank does not match the quiz question count.")
        self._quiz = quiz
        self._questions: tuple[Question, ...] = tuple(questions)
        self._student_id = student_id
        self._display_name = display_name
        self._submissions = submission_store
        self._leaderboard = leaderboard_store
        self._clock = clock

        self._state = SessionState.NOT_STARTED
        self._answers: list[int] = []
        self._position: int = 0
        self._remaining_seconds: int = 0
        self._started_at: datetime | None = None
        self._submission: Submission | None = None
        self._submit_reason: SubmitReason | None = None
        self._leaderboard_pending: bool = False

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def submission(self) -> Submission | None:
        return self._submission

    def is_in_progress(self) -> bool:
        return self._state is SessionState.IN_PROGRESS

    def has_pending_publish(self) -> bool:
        """True when the submission is stored but its leaderboard record is not."""
        return self._leaderboard_pending

    def retry_pending_publish(self) -> bool:
        """Write a leaderboard record that failed earlier. Returns True if one was written."""
        if not self._leaderboard_pending:
            return False
        self._publish_leaderboard()
        logger.info(
            "Leaderboard entry for quiz %s by %s published on retry",
            self._quiz.id,
            self._student_id,
        )
        return True

    def begin(self) -> None:
        if self._state is not SessionState.NOT_STARTED:
            raise RuntimeError("Session has already been started.")
        self._answers = [UNSET_ANSWER] * len(self._questions)
        self._position = 0
        self._remaining_seconds = self._quiz.duration_minutes * SECONDS_PER_MINUTE
        self._started_at = self._clock.now()
        self._state = SessionState.IN_PROGRESS
        logger.info(
            "Session started for quiz %s by %s (%d s)",
            self._quiz.id,
            self._student_id,
            self._remaining_seconds,
        )

    def select_answer(self, question_index: int, option_index: int) -> bool:
        """Record an answer. Returns False when the session no longer accepts answers."""
        if not self._accepts_answers():
            return False
        if not 0 <= question_index < len(self._questions):
            raise InvalidAnswerIndex(f"Question index {question_index} out of range")
        options = self._questions[question_index].options
        if not 0 <= option_index < len(options):
            raise InvalidAnswerIndex(f"Option index {option_index} out of range")
        self._answers[question_index] = option_index
        return True

    def navigate(self, index: int) -> int:
        if self.is_in_progress():
            self._position = max(0, min(index, len(self._questions) - 1))
        return self._position

    def tick(self, seconds: int = 1) -> Submission | None:
        """Advance the countdown; auto-submits when it reaches zero."""
        if not self.is_in_progress():
            return self._submission
        self._remaining_seconds = max(0, self._remaining_seconds - seconds)
        if self._remaining_seconds == 0:
            return self._finalize(SubmitReason.TIMEOUT)
        return None

    def submit(self) -> Submission:
        """Submit manually. Repeated calls return the finalized submission."""
        if self._state is SessionState.NOT_STARTED:
            raise RuntimeError("Session has not been started.")
        if self._state is SessionState.SUBMITTED:
            self.retry_pending_publish()
            return self._final_submission()
        return self._finalize(SubmitReason.MANUAL)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            quiz_id=self._quiz.id,
            student_id=self._student_id,
            state=self._state,
            current_index=self._position,
            answers=tuple(self._answers),
            remaining_seconds=self._remaining_seconds,
            started_at=self._started_at,
            submission=self._submission,
            submit_reason=self._submit_reason,
        )

    def _accepts_answers(self) -> bool:
        return self.is_in_progress() and self._remaining_seconds > 0

    def _finalize(self, reason: SubmitReason) -> Submission:
        answers = tuple(self._answers)
        result = score(answers, self._questions)
        submission = Submission(
            quiz_id=self._quiz.id,
            student_id=self._student_id,
            answers=answers,
            score=result.percent,
            bucket=result.bucket,
            submitted_at=self._clock.now(),
        )
        try:
            self._submissions.create_submission(submission)
        except StorageUnavailable:
            logger.warning(
                "Could not persist submission for quiz %s by %s; session stays open",
                self._quiz.id,
                self._student_id,
            )
            raise
        except DuplicateSubmission:
            self._state = SessionState.SUBMITTED
            self._submission = self._submissions.get_submission(self._quiz.id, self._student_id)
            raise

        self._state = SessionState.SUBMITTED
        self._submission = submission
        self._submit_reason = reason
        self._remaining_seconds = 0
        logger.info(
            "Quiz %s submitted by %s (%s): %d%% %s",
            self._quiz.id,
            self._student_id,
            reason.value,
            submission.score,
            submission.bucket,
        )
        self._leaderboard_pending = True
        self._publish_leaderboard()
        return submission

    def _final_submission(self) -> Submission:
        if self._submission is None:
            raise RuntimeError("Session has no stored submission.")
        return self._submission

    def _publish_leaderboard(self) -> None:
        submission = self._final_submission()
        self._leaderboard.record_entry(
            LeaderboardRecord(
                quiz_id=self._quiz.id,
                student_id=self._student_id,
                display_name=self._display_name,
                score=submission.score,
                submitted_at=submission.submitted_at,
            )
        )
        self._leaderboard_pending = False
