"""Business logic shared by every client of the quiz platform."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
from threading import Lock
from uuid import uuid4

from quiz_room.core.availability import gate, is_document_unlocked
from quiz_room.core.clock import Clock, SystemClock, ensure_utc
from quiz_room.core.errors import (
    DuplicateSubmission,
    IneligibleReason,
    IneligibleToStart,
    PermissionDenied,
    SessionNotFound,
    StorageUnavailable,
)
from quiz_room.core.models import (
    Document,
    LeaderboardEntry,
    Question,
    Quiz,
    QuizStatus,
    RequestContext,
    Role,
    Room,
    Submission,
    UserProfile,
)
from quiz_room.core.question_generation import QuestionGenerator, generate_question_bank
from quiz_room.core.services.directory import DocumentRepository, UserDirectory
from quiz_room.core.services.leaderboard import build_leaderboard, top_entries
from quiz_room.core.services.performance import QuizPerformance, summarize_quiz
from quiz_room.core.services.quiz_repository import QuizRepository, validate_schedule
from quiz_room.core.services.quiz_session import QuizSession, SessionSnapshot
from quiz_room.core.services.room_manager import RoomManager
from quiz_room.core.services.stores import (
    InMemoryLeaderboardStore,
    InMemorySubmissionStore,
    LeaderboardStore,
    SubmissionStore,
)

logger = logging.getLogger(__name__)


class QuizListView(str, Enum):
    ALL = "all"
    PENDING = "pending"
    SUBMITTED = "submitted"


@dataclass(frozen=True, slots=True)
class StudentQuizView:
    quiz: Quiz
    status: QuizStatus
    submitted: bool
    score: int | None = None
    bucket: str | None = None


@dataclass(frozen=True, slots=True)
class DocumentView:
    document: Document
    unlocked: bool
    quiz_end_at: datetime | None


class QuizManager:
    """Facade over rooms, quizzes, sessions, stores and the clock.

    Every operation receives the caller's ``RequestContext`` explicitly.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        generator: QuestionGenerator | None = None,
        submission_store: SubmissionStore | None = None,
        leaderboard_store: LeaderboardStore | None = None,
    ) -> None:
        self._lock = Lock()
        self._clock = clock or SystemClock()
        self._generator = generator

        # Services
        self._users = UserDirectory()
        self._rooms = RoomManager()
        self._quizzes = QuizRepository()
        self._documents = DocumentRepository()
        self._submissions = submission_store or InMemorySubmissionStore()
        self._leaderboard = leaderboard_store or InMemoryLeaderboardStore()
        self._sessions: dict[tuple[str, str], QuizSession] = {}
        # Sessions still counting down or waiting on a leaderboard write.
        self._ticking: set[tuple[str, str]] = set()

    # --- Users ---

    def register_user(self, user_id: str, display_name: str, role: Role) -> UserProfile:
        with self._lock:
            return self._users.register(user_id, display_name, role)

    def get_context(self, user_id: str) -> RequestContext:
        """Build a fresh request context from the stored profile."""
        with self._lock:
            return RequestContext.from_profile(self._users.get(user_id))

    # --- Rooms ---

    def create_room(self, context: RequestContext, name: str) -> Room:
        _require_role(context, Role.FACULTY)
        with self._lock:
            room = self._rooms.create_room(name, context.user_id, self._clock.now())
            self._users.add_room(context.user_id, room.id)
            logger.info("Room %s created by %s", room.id, context.user_id)
            return room

    def join_room(self, context: RequestContext, room_code: str) -> Room:
        _require_role(context, Role.STUDENT)
        with self._lock:
            room = self._rooms.register_student(room_code, context.user_id)
            self._users.add_room(context.user_id, room.id)
            return room

    def list_rooms(self, context: RequestContext) -> list[Room]:
        with self._lock:
            if context.role is Role.FACULTY:
                return self._rooms.get_faculty_rooms(context.user_id)
            return self._rooms.get_rooms(context.room_ids)

    # --- Quiz authoring ---

    def create_quiz(
        self,
        context: RequestContext,
        *,
        room_id: str,
        title: str,
        document_text: str,
        storage_location: str,
        question_count: int,
        start_at: datetime,
        end_at: datetime,
        duration_minutes: int,
        document_title: str | None = None,
    ) -> Quiz:
        """Generate a question bank from a document and schedule a quiz for it."""
        _require_role(context, Role.FACULTY)
        cleaned_title = title.strip()
        if not cleaned_title:
            raise ValueError("Quiz title must not be empty.")
        quiz = Quiz(
            id=uuid4().hex,
            title=cleaned_title,
            room_id=room_id,
            document_id=uuid4().hex,
            question_count=question_count,
            start_at=ensure_utc(start_at),
            end_at=ensure_utc(end_at),
            duration_minutes=duration_minutes,
            created_by=context.user_id,
        )
        validate_schedule(quiz)
        with self._lock:
            self._require_room_owner(context, room_id)

        # Generation runs outside the lock.
        questions = generate_question_bank(self._generator, document_text, question_count)

        with self._lock:
            self._require_room_owner(context, room_id)
            self._documents.add_document(
                Document(
                    id=quiz.document_id,
                    title=(document_title or "").strip() or cleaned_title,
                    owner_id=context.user_id,
                    room_id=room_id,
                    storage_location=storage_location,
                    created_at=self._clock.now(),
                )
            )
            self._quizzes.add_quiz(quiz, questions)
            self._documents.link_quiz(quiz.document_id, quiz.id)
            logger.info(
                "Quiz %s created in room %s with %d questions",
                quiz.id,
                room_id,
                question_count,
            )
            return quiz

    # --- Study material ---

    def add_document(
        self,
        context: RequestContext,
        room_id: str,
        title: str,
        storage_location: str,
    ) -> DocumentView:
        """Share a study document in a room without attaching it to a quiz."""
        _require_role(context, Role.FACULTY)
        with self._lock:
            self._require_room_owner(context, room_id)
            document = Document(
                id=uuid4().hex,
                title=title.strip(),
                owner_id=context.user_id,
                room_id=room_id,
                storage_location=storage_location,
                created_at=self._clock.now(),
            )
            self._documents.add_document(document)
            logger.info("Document %s added to room %s", document.id, room_id)
            return DocumentView(
                document=document,
                unlocked=is_document_unlocked(document.created_at, None),
                quiz_end_at=None,
            )

    # --- Quiz listing ---

    def list_student_quizzes(
        self,
        context: RequestContext,
        view: QuizListView = QuizListView.ALL,
    ) -> list[StudentQuizView]:
        with self._lock:
            now = self._clock.now()
            views: list[StudentQuizView] = []
            for quiz in self._quizzes.list_quizzes(context.room_ids):
                submission = self._submissions.get_submission(quiz.id, context.user_id)
                views.append(
                    StudentQuizView(
                        quiz=quiz,
                        status=gate(now, quiz.start_at, quiz.end_at),
                        submitted=submission is not None,
                        score=submission.score if submission else None,
                        bucket=submission.bucket if submission else None,
                    )
                )

        if view is QuizListView.PENDING:
            pending = [v for v in views if v.status is QuizStatus.ACTIVE and not v.submitted]
            return sorted(pending, key=lambda v: v.quiz.end_at)
        if view is QuizListView.SUBMITTED:
            return [v for v in views if v.submitted]
        return views

    # --- Session lifecycle ---

    def start_session(self, context: RequestContext, quiz_id: str) -> SessionSnapshot:
        with self._lock:
            quiz = self._quizzes.get_quiz(quiz_id)
            if not context.is_member_of(quiz.room_id) or context.role is not Role.STUDENT:
                raise IneligibleToStart(IneligibleReason.NOT_A_MEMBER)
            if self._submissions.get_submission(quiz.id, context.user_id) is not None:
                raise IneligibleToStart(IneligibleReason.ALREADY_SUBMITTED)
            existing = self._sessions.get((quiz.id, context.user_id))
            if existing is not None and existing.is_in_progress():
                raise IneligibleToStart(IneligibleReason.SESSION_ACTIVE)
            if gate(self._clock.now(), quiz.start_at, quiz.end_at) is not QuizStatus.ACTIVE:
                raise IneligibleToStart(IneligibleReason.WINDOW_NOT_ACTIVE)

            session = QuizSession(
                quiz=quiz,
                questions=self._quizzes.get_questions(quiz.id),
                student_id=context.user_id,
                display_name=context.display_name,
                submission_store=self._submissions,
                leaderboard_store=self._leaderboard,
                clock=self._clock,
            )
            session.begin()
            key = (quiz.id, context.user_id)
            self._sessions[key] = session
            self._ticking.add(key)
            return session.snapshot()

    def get_session(self, context: RequestContext, quiz_id: str) -> SessionSnapshot:
        with self._lock:
            return self._get_session(context, quiz_id).snapshot()

    def get_session_questions(self, context: RequestContext, quiz_id: str) -> tuple[Question, ...]:
        with self._lock:
            return self._get_session(context, quiz_id).questions

    def select_answer(
        self,
        context: RequestContext,
        quiz_id: str,
        question_index: int,
        option_index: int,
    ) -> SessionSnapshot:
        with self._lock:
            session = self._get_session(context, quiz_id)
            session.select_answer(question_index, option_index)
            return session.snapshot()

    def navigate(self, context: RequestContext, quiz_id: str, index: int) -> SessionSnapshot:
        with self._lock:
            session = self._get_session(context, quiz_id)
            session.navigate(index)
            return session.snapshot()

    def submit_session(self, context: RequestContext, quiz_id: str) -> Submission:
        with self._lock:
            session = self._get_session(context, quiz_id)
            try:
                return session.submit()
            finally:
                self._update_ticking((quiz_id, context.user_id), session)

    def tick_sessions(self, seconds: int = 1) -> list[Submission]:
        """Advance every running countdown. Returns the submissions that timed out.

        Submitted sessions with a pending leaderboard write are retried as well.
        """
        finalized: list[Submission] = []
        with self._lock:
            for key in sorted(self._ticking):
                session = self._sessions[key]
                try:
                    if session.is_in_progress():
                        submission = session.tick(seconds)
                        if submission is not None:
                            finalized.append(submission)
                    else:
                        session.retry_pending_publish()
                except StorageUnavailable:
                    logger.warning(
                        "Storage unavailable for quiz %s by %s; retrying on next tick",
                        key[0],
                        key[1],
                    )
                except DuplicateSubmission as exc:
                    logger.warning("Timed-out session was already submitted: %s", exc)
                self._update_ticking(key, session)
        return finalized

    # --- Results ---

    def get_leaderboard(
        self,
        context: RequestContext,
        quiz_id: str,
        limit: int | None = None,
    ) -> list[LeaderboardEntry]:
        with self._lock:
            quiz = self._quizzes.get_quiz(quiz_id)
            self._require_room_access(context, quiz.room_id)
            entries = build_leaderboard(self._leaderboard.list_entries(quiz.id))
        return top_entries(entries, limit)

    def list_room_documents(self, context: RequestContext, room_id: str) -> list[DocumentView]:
        with self._lock:
            self._require_room_access(context, room_id)
            now = self._clock.now()
            views: list[DocumentView] = []
            for document in self._documents.list_room_documents(room_id):
                quiz_end = None
                if document.linked_quiz_id is not None:
                    quiz_end = self._quizzes.get_quiz(document.linked_quiz_id).end_at
                views.append(
                    DocumentView(
                        document=document,
                        unlocked=is_document_unlocked(now, quiz_end),
                        quiz_end_at=quiz_end,
                    )
                )
            return views

    def get_quiz_performance(self, context: RequestContext) -> list[QuizPerformance]:
        _require_role(context, Role.FACULTY)
        with self._lock:
            summaries: list[QuizPerformance] = []
            for room in self._rooms.get_faculty_rooms(context.user_id):
                for quiz in self._quizzes.list_room_quizzes(room.id):
                    summaries.append(
                        summarize_quiz(
                            quiz,
                            room,
                            self._submissions.list_submissions(quiz.id),
                            self._users.find_display_name,
                        )
                    )
            return summaries

    # --- Helpers ---

    def _update_ticking(self, key: tuple[str, str], session: QuizSession) -> None:
        if not session.is_in_progress() and not session.has_pending_publish():
            self._ticking.discard(key)

    def _get_session(self, context: RequestContext, quiz_id: str) -> QuizSession:
        session = self._sessions.get((quiz_id, context.user_id))
        if session is None:
            raise SessionNotFound(f"No session for quiz {quiz_id}.")
        return session

    def _require_room_owner(self, context: RequestContext, room_id: str) -> Room:
        room = self._rooms.get_room(room_id)
        if room.faculty_id != context.user_id:
            raise PermissionDenied("Only the room's faculty can manage its quizzes.")
        return room

    def _require_room_access(self, context: RequestContext, room_id: str) -> Room:
        room = self._rooms.get_room(room_id)
        if room.faculty_id != context.user_id and context.user_id not in room.student_ids:
            raise PermissionDenied("You are not a member of this room.")
        return room


def _require_role(context: RequestContext, role: Role) -> None:
    if context.role is not role:
        raise PermissionDenied(f"This action requires the {role.value} role.")
