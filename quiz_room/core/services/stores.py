"""Persistence contracts for submissions and leaderboard writes.

The submission store doubles as the create-once guard for finalized attempts:
``create_submission`` refuses to overwrite and raises ``DuplicateSubmission``
instead. The leaderboard store is append-only and does not enforce uniqueness;
ranking de-duplicates on read.
"""

from __future__ import annotations

from threading import Lock
from typing import Protocol

from quiz_room.core.errors import DuplicateSubmission
from quiz_room.core.models import LeaderboardRecord, Submission


class SubmissionStore(Protocol):
    def create_submission(self, submission: Submission) -> None: ...

    def get_submission(self, quiz_id: str, student_id: str) -> Submission | None: ...

    def list_submissions(self, quiz_id: str) -> list[Submission]: ...


class LeaderboardStore(Protocol):
    def record_entry(self, record: LeaderboardRecord) -> None: ...

    def list_entries(self, quiz_id: str) -> list[LeaderboardRecord]: ...


class InMemorySubmissionStore:
    """Thread-safe submission store keyed by (quiz id, student id)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._submissions: dict[tuple[str, str], Submission] = {}

    def create_submission(self, submission: Submission) -> None:
        key = (submission.quiz_id, submission.student_id)
        with self._lock:
            if key in self._submissions:
                raise DuplicateSubmission(submission.quiz_id, submission.student_id)
            self._submissions[key] = submission

    def get_submission(self, quiz_id: str, student_id: str) -> Submission | None:
        with self._lock:
            return self._submissions.get((quiz_id, student_id))

    def list_submissions(self, quiz_id: str) -> list[Submission]:
        with self._lock:
            return [s for (qid, _), s in self._submissions.items() if qid == quiz_id]


class InMemoryLeaderboardStore:
    """Append-only list of leaderboard records."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._records: list[LeaderboardRecord] = []

    def record_entry(self, record: LeaderboardRecord) -> None:
        with self._lock:
            self._records.append(record)

    def list_entries(self, quiz_id: str) -> list[LeaderboardRecord]:
        with self._lock:
            return [r for r in self._records if r.quiz_id == quiz_id]
