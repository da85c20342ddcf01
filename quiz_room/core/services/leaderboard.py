"""Ranking of leaderboard records for one quiz."""

from __future__ import annotations

from collections.abc import Iterable

from quiz_room.core.models import LeaderboardEntry, LeaderboardRecord


def build_leaderboard(records: Iterable[LeaderboardRecord]) -> list[LeaderboardEntry]:
    """Rank records by score (desc), then earlier submission, then student id.

    Ranks are 1-based and contiguous; exact ties never share a rank. The
    leaderboard store is append-only, so a student appearing more than once
    keeps only their earliest record.
    """
    earliest: dict[str, LeaderboardRecord] = {}
    for record in records:
        current = earliest.get(record.student_id)
        if current is None or record.submitted_at < current.submitted_at:
            earliest[record.student_id] = record

    ordered = sorted(
        earliest.values(),
        key=lambda r: (-r.score, r.submitted_at, r.student_id),
    )
    return [
        LeaderboardEntry(
            student_id=record.student_id,
            display_name=record.display_name,
            score=record.score,
            submitted_at=record.submitted_at,
            rank=position,
        )
        for position, record in enumerate(ordered, start=1)
    ]


def top_entries(entries: list[LeaderboardEntry], limit: int | None = None) -> list[LeaderboardEntry]:
    if limit is None:
        return list(entries)
    if limit < 0:
        raise ValueError("Limit must not be negative.")
    return entries[:limit]
