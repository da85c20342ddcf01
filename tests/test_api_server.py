from datetime import timedelta

from fastapi.testclient import TestClient
import pytest

from quiz_room.core.models import Role
from quiz_room.core.quiz_manager import QuizManager
from quiz_room.server.api_server import create_api_app

from conftest import NOW, FakeGenerator


def _headers(user_id):
    return {"X-User-Id": user_id}


@pytest.fixture
def client(manager):
    return TestClient(create_api_app(manager))


@pytest.fixture
def api_classroom(client):
    client.post("/users", json={"user_id": "prof", "display_name": "Prof. Ada", "role": "faculty"})
    client.post("/users", json={"user_id": "s1", "display_name": "Grace", "role": "student"})
    room = client.post("/rooms", json={"name": "Biology 101"}, headers=_headers("prof")).json()
    client.post(f"/rooms/{room['room_id']}/join", headers=_headers("s1"))
    quiz = client.post(
        f"/rooms/{room['room_id']}/quizzes",
        json={
            "title": "Cell Biology",
            "storage_location": "documents/cells.pdf",
            "document_text": "Cells are the basic unit of life.",
            "question_count": 4,
            "start_at": (NOW - timedelta(minutes=5)).isoformat(),
            "end_at": (NOW + timedelta(hours=1)).isoformat(),
            "duration_minutes": 15,
        },
        headers=_headers("prof"),
    )
    assert quiz.status_code == 201
    return {"room": room, "quiz": quiz.json()}


def test_register_user(client):
    response = client.post("/users", json={"user_id": "s9", "display_name": "Linus", "role": "student"})
    assert response.status_code == 201
    assert response.json() == {"user_id": "s9", "display_name": "Linus", "role": "student", "rooms": []}


def test_unknown_user_is_unauthorized(client):
    assert client.get("/rooms", headers=_headers("ghost")).status_code == 401


def test_full_attempt_flow(client, api_classroom):
    quiz_id = api_classroom["quiz"]["quiz_id"]

    started = client.post(f"/quizzes/{quiz_id}/session", headers=_headers("s1"))
    assert started.status_code == 201
    body = started.json()
    assert body["state"] == "in_progress"
    assert body["remaining_seconds"] == 900
    assert body["answers"] == [-1, -1, -1, -1]
    assert "correct_option_index" not in body["questions"][0]
    assert body["questions"][0]["question_html"].startswith("<p>")
    assert [o["label"] for o in body["questions"][0]["options"]] == ["A", "B", "C", "D"]

    answered = client.put(f"/quizzes/{quiz_id}/session/answers/1", json={"option_index": 1}, headers=_headers("s1"))
    assert answered.json()["answers"] == [-1, 1, -1, -1]

    moved = client.post(f"/quizzes/{quiz_id}/session/navigate", json={"index": 10}, headers=_headers("s1"))
    assert moved.json()["current_index"] == 3

    submitted = client.post(f"/quizzes/{quiz_id}/session/submit", headers=_headers("s1"))
    assert submitted.status_code == 200
    assert submitted.json()["score"] == 25
    assert submitted.json()["analysis"] == "Needs Improvement"

    review = client.get(f"/quizzes/{quiz_id}/session", headers=_headers("s1")).json()
    assert review["state"] == "submitted"
    assert review["submit_reason"] == "manual"
    assert review["questions"][1]["correct_option_index"] == 1

    again = client.post(f"/quizzes/{quiz_id}/session", headers=_headers("s1"))
    assert again.status_code == 409

    board = client.get(f"/quizzes/{quiz_id}/leaderboard", headers=_headers("s1")).json()
    assert [(row["rank"], row["student_name"], row["score"]) for row in board] == [(1, "Grace", 25)]

    submitted_view = client.get("/quizzes", params={"view": "submitted"}, headers=_headers("s1")).json()
    assert [q["quiz_id"] for q in submitted_view] == [quiz_id]
    assert submitted_view[0]["status"] == "active"


def test_invalid_answer_index_is_unprocessable(client, api_classroom):
    quiz_id = api_classroom["quiz"]["quiz_id"]
    client.post(f"/quizzes/{quiz_id}/session", headers=_headers("s1"))
    response = client.put(f"/quizzes/{quiz_id}/session/answers/9", json={"option_index": 0}, headers=_headers("s1"))
    assert response.status_code == 422


def test_locked_document_hides_storage_location(client, api_classroom):
    room_id = api_classroom["room"]["room_id"]
    [document] = client.get(f"/rooms/{room_id}/documents", headers=_headers("s1")).json()
    assert document["unlocked"] is False
    assert document["storage_location"] is None
    assert document["quiz_linked"] == api_classroom["quiz"]["quiz_id"]


def test_shared_study_material_is_unlocked(client, api_classroom):
    room_id = api_classroom["room"]["room_id"]
    response = client.post(
        f"/rooms/{room_id}/documents",
        json={"title": "Lecture notes", "storage_location": "documents/notes.pdf"},
        headers=_headers("prof"),
    )
    assert response.status_code == 201
    assert response.json()["unlocked"] is True

    documents = client.get(f"/rooms/{room_id}/documents", headers=_headers("s1")).json()
    [notes] = [d for d in documents if d["title"] == "Lecture notes"]
    assert notes["unlocked"] is True
    assert notes["storage_location"] == "documents/notes.pdf"
    assert notes["quiz_linked"] is None


def test_students_cannot_share_study_material(client, api_classroom):
    room_id = api_classroom["room"]["room_id"]
    response = client.post(
        f"/rooms/{room_id}/documents",
        json={"title": "Cheat sheet", "storage_location": "documents/cheat.pdf"},
        headers=_headers("s1"),
    )
    assert response.status_code == 403


def test_performance_is_faculty_only(client, api_classroom):
    assert client.get("/performance", headers=_headers("s1")).status_code == 403
    [summary] = client.get("/performance", headers=_headers("prof")).json()
    assert summary["total_students"] == 1
    assert summary["submitted_count"] == 0


def test_joining_twice_conflicts(client, api_classroom):
    room_id = api_classroom["room"]["room_id"]
    assert client.post(f"/rooms/{room_id}/join", headers=_headers("s1")).status_code == 409
    assert client.post("/rooms/nope/join", headers=_headers("s1")).status_code == 404


def test_generation_failure_is_bad_gateway(clock):
    manager = QuizManager(clock=clock, generator=FakeGenerator(error=RuntimeError("quota")))
    manager.register_user("prof", "Prof. Ada", Role.FACULTY)
    room = manager.create_room(manager.get_context("prof"), "Physics")
    client = TestClient(create_api_app(manager))
    response = client.post(
        f"/rooms/{room.id}/quizzes",
        json={
            "title": "Forces",
            "storage_location": "documents/forces.pdf",
            "document_text": "F = ma",
            "start_at": NOW.isoformat(),
            "end_at": (NOW + timedelta(hours=1)).isoformat(),
        },
        headers=_headers("prof"),
    )
    assert response.status_code == 502


def test_invalid_schedule_is_unprocessable(client, api_classroom):
    room_id = api_classroom["room"]["room_id"]
    response = client.post(
        f"/rooms/{room_id}/quizzes",
        json={
            "title": "Backwards",
            "storage_location": "documents/x.pdf",
            "document_text": "text",
            "start_at": NOW.isoformat(),
            "end_at": (NOW - timedelta(hours=1)).isoformat(),
        },
        headers=_headers("prof"),
    )
    assert response.status_code == 422
