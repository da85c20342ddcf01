"""FastAPI server that exposes the quiz platform to faculty and students."""

from __future__ import annotations

from datetime import datetime

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field
import uvicorn

from quiz_room.constants.about import APP_NAME, APP_VERSION
from quiz_room.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, USER_ID_HEADER
from quiz_room.constants.quiz_constants import OPTION_LABELS
from quiz_room.core.clock import SessionTicker
from quiz_room.core.errors import (
    AlreadyMember,
    DuplicateSubmission,
    GenerationFailed,
    IneligibleToStart,
    InvalidAnswerIndex,
    NotFound,
    PermissionDenied,
    QuizRoomError,
    StorageUnavailable,
    UserNotFound,
)
from quiz_room.core.markdown_renderer import renderer
from quiz_room.core.models import (
    Document,
    LeaderboardEntry,
    Question,
    Quiz,
    RequestContext,
    Role,
    Room,
    Submission,
)
from quiz_room.core.quiz_manager import DocumentView, QuizListView, QuizManager, StudentQuizView
from quiz_room.core.services.performance import QuizPerformance
from quiz_room.core.services.quiz_session import SessionSnapshot, SessionState


class RegisterPayload(BaseModel):
    user_id: str
    display_name: str
    role: Role


class RoomPayload(BaseModel):
    name: str


class QuizPayload(BaseModel):
    """Payload schema for creating a quiz from an uploaded document."""

    title: str
    document_title: str | None = None
    storage_location: str
    document_text: str
    question_count: int = Field(default=10, gt=0)
    start_at: datetime
    end_at: datetime
    duration_minutes: int = Field(default=60, gt=0)


class DocumentPayload(BaseModel):
    """Payload schema for sharing study material in a room."""

    title: str
    storage_location: str


class AnswerPayload(BaseModel):
    """Payload schema for selecting an option of one question."""

    option_index: int


class NavigatePayload(BaseModel):
    index: int


def _to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, UserNotFound):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, PermissionDenied):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, (IneligibleToStart, DuplicateSubmission, AlreadyMember)):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (InvalidAnswerIndex, ValueError)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, GenerationFailed):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, StorageUnavailable):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _room_payload(room: Room) -> dict[str, object]:
    return {
        "room_id": room.id,
        "name": room.name,
        "faculty_id": room.faculty_id,
        "student_count": len(room.student_ids),
        "created_at": _iso(room.created_at),
    }


def _quiz_payload(quiz: Quiz) -> dict[str, object]:
    return {
        "quiz_id": quiz.id,
        "title": quiz.title,
        "room_id": quiz.room_id,
        "document_id": quiz.document_id,
        "question_count": quiz.question_count,
        "start_at": _iso(quiz.start_at),
        "end_at": _iso(quiz.end_at),
        "duration_minutes": quiz.duration_minutes,
        "created_by": quiz.created_by,
    }


def _student_quiz_payload(view: StudentQuizView) -> dict[str, object]:
    payload = _quiz_payload(view.quiz)
    payload.update(
        status=view.status.value,
        submitted=view.submitted,
        score=view.score,
        analysis=view.bucket,
    )
    return payload


def _submission_payload(submission: Submission) -> dict[str, object]:
    return {
        "quiz_id": submission.quiz_id,
        "student_id": submission.student_id,
        "answers": list(submission.answers),
        "score": submission.score,
        "analysis": submission.bucket,
        "submitted_at": _iso(submission.submitted_at),
    }


def _question_payload(index: int, question: Question, reveal: bool) -> dict[str, object]:
    payload: dict[str, object] = {
        "index": index,
        "question_text": question.question_text,
        "question_html": renderer.render_fragment(question.question_text),
        "options": [
            {"label": label, "text": text, "html": renderer.render_inline(text)}
            for label, text in zip(OPTION_LABELS, question.options)
        ],
    }
    # Correct answers stay hidden while the attempt is running.
    if reveal:
        payload["correct_option_index"] = question.correct_option_index
        payload["explanation_html"] = renderer.render_fragment(question.explanation)
    return payload


def _session_payload(snapshot: SessionSnapshot, questions: tuple[Question, ...]) -> dict[str, object]:
    reveal = snapshot.state is SessionState.SUBMITTED
    return {
        "quiz_id": snapshot.quiz_id,
        "state": snapshot.state.value,
        "current_index": snapshot.current_index,
        "answers": list(snapshot.answers),
        "remaining_seconds": snapshot.remaining_seconds,
        "started_at": _iso(snapshot.started_at),
        "submit_reason": snapshot.submit_reason.value if snapshot.submit_reason else None,
        "submission": _submission_payload(snapshot.submission) if snapshot.submission else None,
        "questions": [
            _question_payload(index, question, reveal)
            for index, question in enumerate(questions)
        ],
    }


def _leaderboard_payload(entry: LeaderboardEntry) -> dict[str, object]:
    return {
        "rank": entry.rank,
        "student_id": entry.student_id,
        "student_name": entry.display_name,
        "score": entry.score,
        "submitted_at": _iso(entry.submitted_at),
    }


def _document_payload(view: DocumentView) -> dict[str, object]:
    document: Document = view.document
    return {
        "document_id": document.id,
        "title": document.title,
        "uploaded_by": document.owner_id,
        "room_id": document.room_id,
        # Locked documents do not reveal where they are stored.
        "storage_location": document.storage_location if view.unlocked else None,
        "quiz_linked": document.linked_quiz_id,
        "quiz_end_at": _iso(view.quiz_end_at),
        "unlocked": view.unlocked,
    }


def _performance_payload(summary: QuizPerformance) -> dict[str, object]:
    return {
        "quiz_id": summary.quiz_id,
        "room_id": summary.room_id,
        "room_name": summary.room_name,
        "title": summary.title,
        "start_at": _iso(summary.start_at),
        "total_students": summary.total_students,
        "submitted_count": summary.submitted_count,
        "average_score": summary.average_score,
        "participation_percent": summary.participation_percent,
        "submissions": [
            {
                "student_id": row.student_id,
                "student_name": row.student_name,
                "score": row.score,
                "analysis": row.bucket,
                "submitted_at": _iso(row.submitted_at),
            }
            for row in summary.submissions
        ],
    }


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    def context_dep(
        user_id: str = Header(alias=USER_ID_HEADER),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> RequestContext:
        try:
            return manager.get_context(user_id)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc

    @app.post("/users", status_code=201)
    def register_user(
        payload: RegisterPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            profile = manager.register_user(payload.user_id, payload.display_name, payload.role)
        except ValueError as exc:
            raise _to_http_exception(exc) from exc
        return {
            "user_id": profile.user_id,
            "display_name": profile.display_name,
            "role": profile.role.value,
            "rooms": list(profile.room_ids),
        }

    @app.get("/rooms")
    def list_rooms(
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_room_payload(room) for room in manager.list_rooms(context)]

    @app.post("/rooms", status_code=201)
    def create_room(
        payload: RoomPayload,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            room = manager.create_room(context, payload.name)
        except (QuizRoomError, ValueError) as exc:
            raise _to_http_exception(exc) from exc
        return _room_payload(room)

    @app.post("/rooms/{room_id}/join", status_code=201)
    def join_room(
        room_id: str,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            room = manager.join_room(context, room_id)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc
        return _room_payload(room)

    @app.get("/rooms/{room_id}/documents")
    def list_documents(
        room_id: str,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        try:
            views = manager.list_room_documents(context, room_id)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc
        return [_document_payload(view) for view in views]

    @app.post("/rooms/{room_id}/documents", status_code=201)
    def add_document(
        room_id: str,
        payload: DocumentPayload,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            view = manager.add_document(context, room_id, payload.title, payload.storage_location)
        except (QuizRoomError, ValueError) as exc:
            raise _to_http_exception(exc) from exc
        return _document_payload(view)

    @app.post("/rooms/{room_id}/quizzes", status_code=201)
    def create_quiz(
        room_id: str,
        payload: QuizPayload,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            quiz = manager.create_quiz(
                context,
                room_id=room_id,
                title=payload.title,
                document_title=payload.document_title,
                document_text=payload.document_text,
                storage_location=payload.storage_location,
                question_count=payload.question_count,
                start_at=payload.start_at,
                end_at=payload.end_at,
                duration_minutes=payload.duration_minutes,
            )
        except (QuizRoomError, ValueError) as exc:
            raise _to_http_exception(exc) from exc
        return _quiz_payload(quiz)

    @app.get("/quizzes")
    def list_quizzes(
        view: QuizListView = QuizListView.ALL,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_student_quiz_payload(v) for v in manager.list_student_quizzes(context, view)]

    @app.get("/quizzes/{quiz_id}/leaderboard")
    def get_leaderboard(
        quiz_id: str,
        limit: int | None = None,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        try:
            entries = manager.get_leaderboard(context, quiz_id, limit)
        except (QuizRoomError, ValueError) as exc:
            raise _to_http_exception(exc) from exc
        return [_leaderboard_payload(entry) for entry in entries]

    @app.post("/quizzes/{quiz_id}/session", status_code=201)
    def start_session(
        quiz_id: str,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            snapshot = manager.start_session(context, quiz_id)
            questions = manager.get_session_questions(context, quiz_id)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc
        return _session_payload(snapshot, questions)

    @app.get("/quizzes/{quiz_id}/session")
    def get_session(
        quiz_id: str,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            snapshot = manager.get_session(context, quiz_id)
            questions = manager.get_session_questions(context, quiz_id)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc
        return _session_payload(snapshot, questions)

    @app.put("/quizzes/{quiz_id}/session/answers/{question_index}")
    def select_answer(
        quiz_id: str,
        question_index: int,
        payload: AnswerPayload,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            snapshot = manager.select_answer(context, quiz_id, question_index, payload.option_index)
            questions = manager.get_session_questions(context, quiz_id)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc
        return _session_payload(snapshot, questions)

    @app.post("/quizzes/{quiz_id}/session/navigate")
    def navigate(
        quiz_id: str,
        payload: NavigatePayload,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            snapshot = manager.navigate(context, quiz_id, payload.index)
            questions = manager.get_session_questions(context, quiz_id)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc
        return _session_payload(snapshot, questions)

    @app.post("/quizzes/{quiz_id}/session/submit")
    def submit_session(
        quiz_id: str,
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            submission = manager.submit_session(context, quiz_id)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc
        return _submission_payload(submission)

    @app.get("/performance")
    def get_performance(
        context: RequestContext = Depends(context_dep),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        try:
            summaries = manager.get_quiz_performance(context)
        except QuizRoomError as exc:
            raise _to_http_exception(exc) from exc
        return [_performance_payload(summary) for summary in summaries]

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API and drive session countdowns until the server exits."""
    app = create_api_app(quiz_manager)
    ticker = SessionTicker(quiz_manager.tick_sessions)
    ticker.start()
    try:
        config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
        uvicorn.Server(config).run()
    finally:
        ticker.stop()
