from datetime import timedelta

import pytest

from quiz_room.core.models import LeaderboardRecord
from quiz_room.core.services.leaderboard import build_leaderboard, top_entries

from conftest import NOW

T0 = NOW
T1 = NOW + timedelta(seconds=30)
T2 = NOW + timedelta(seconds=60)


def _record(student_id, score, submitted_at, name=None):
    return LeaderboardRecord(
        quiz_id="quiz-1",
        student_id=student_id,
        display_name=name or student_id,
        score=score,
        submitted_at=submitted_at,
    )


def test_ties_are_broken_by_earlier_submission():
    entries = build_leaderboard([_record("A", 90, T1), _record("B", 90, T0), _record("C", 70, T2)])
    assert [(e.student_id, e.rank) for e in entries] == [("B", 1), ("A", 2), ("C", 3)]


def test_ranks_are_contiguous_even_on_exact_ties():
    entries = build_leaderboard([_record("b", 50, T0), _record("a", 50, T0), _record("c", 50, T0)])
    assert [e.rank for e in entries] == [1, 2, 3]
    assert [e.student_id for e in entries] == ["a", "b", "c"]


def test_recomputing_is_stable():
    records = [_record("A", 90, T1), _record("B", 90, T0), _record("C", 70, T2), _record("D", 100, T2)]
    assert build_leaderboard(records) == build_leaderboard(list(reversed(records)))


def test_duplicate_student_keeps_earliest_record():
    entries = build_leaderboard([_record("A", 40, T0), _record("A", 100, T1), _record("B", 60, T2)])
    assert [(e.student_id, e.score, e.rank) for e in entries] == [("B", 60, 1), ("A", 40, 2)]


def test_empty_input_gives_empty_board():
    assert build_leaderboard([]) == []


def test_top_entries_limits_rows():
    entries = build_leaderboard([_record("A", 90, T0), _record("B", 80, T0), _record("C", 70, T0)])
    assert [e.student_id for e in top_entries(entries, 2)] == ["A", "B"]
    assert len(top_entries(entries)) == 3
    with pytest.raises(ValueError):
        top_entries(entries, -1)
