from datetime import timedelta

import pytest

from quiz_room.core.availability import gate, is_document_unlocked
from quiz_room.core.models import QuizStatus

from conftest import NOW

START = NOW
END = NOW + timedelta(hours=1)


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (START - timedelta(seconds=1), QuizStatus.UPCOMING),
        (START, QuizStatus.ACTIVE),
        (START + timedelta(minutes=30), QuizStatus.ACTIVE),
        (END - timedelta(microseconds=1), QuizStatus.ACTIVE),
        (END, QuizStatus.ENDED),
        (END + timedelta(days=3), QuizStatus.ENDED),
    ],
)
def test_gate_window_boundaries(now, expected):
    assert gate(now, START, END) is expected


def test_document_linked_to_ended_quiz_is_unlocked():
    assert is_document_unlocked(NOW, NOW - timedelta(seconds=1))


def test_document_linked_to_running_quiz_is_locked():
    assert not is_document_unlocked(NOW, NOW + timedelta(seconds=1))


def test_document_stays_locked_at_exact_quiz_end():
    assert not is_document_unlocked(NOW, NOW)


def test_unlinked_document_is_always_unlocked():
    assert is_document_unlocked(NOW, None)
