"""Service for storing quizzes together with their question banks."""

from __future__ import annotations

from collections.abc import Sequence

from quiz_room.core.errors import QuizNotFound
from quiz_room.core.models import Question, Quiz


class QuizRepository:
    """Holds immutable quizzes and their ordered question banks."""

    def __init__(self) -> None:
        self._quizzes: dict[str, Quiz] = {}
        self._questions: dict[str, tuple[Question, ...]] = {}

    def add_quiz(self, quiz: Quiz, questions: Sequence[Question]) -> None:
        """Store a new quiz. Quizzes are never edited once added."""
        if quiz.id in self._quizzes:
            raise ValueError(f"Quiz {quiz.id} already exists.")
        validate_schedule(quiz)
        bank = tuple(prepare_question(q) for q in questions)
        if len(bank) != quiz.question_count:
            raise ValueError(
                f"Quiz declares {quiz.question_count} questions but {len(bank)} were given."
            )
        self._quizzes[quiz.id] = quiz
        self._questions[quiz.id] = bank

    def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise QuizNotFound(f"Quiz {quiz_id} not found.")
        return quiz

    def get_questions(self, quiz_id: str) -> tuple[Question, ...]:
        self.get_quiz(quiz_id)
        return self._questions[quiz_id]

    def list_room_quizzes(self, room_id: str) -> list[Quiz]:
        return [quiz for quiz in self._quizzes.values() if quiz.room_id == room_id]

    def list_quizzes(self, room_ids: set[str] | frozenset[str]) -> list[Quiz]:
        return [quiz for quiz in self._quizzes.values() if quiz.room_id in room_ids]


def validate_schedule(quiz: Quiz) -> None:
    if not quiz.start_at < quiz.end_at:
        raise ValueError("Quiz start must be before its end.")
    if quiz.duration_minutes <= 0:
        raise ValueError("Quiz duration must be a positive number of minutes.")
    if quiz.question_count <= 0:
        raise ValueError("Quiz must contain at least one question.")


def prepare_question(question: Question) -> Question:
    """Validate and normalize a question before storage."""
    options = _validate_options(question.options)
    if not 0 <= question.correct_option_index < 4:
        raise ValueError("Correct option index must be between 0 and 3.")

    cleaned_text = question.question_text.strip()
    if not cleaned_text:
        raise ValueError("Question text must not be empty.")

    return Question(
        question_text=cleaned_text,
        options=options,
        correct_option_index=question.correct_option_index,
        explanation=question.explanation.strip(),
    )


def _validate_options(options: Sequence[str]) -> tuple[str, ...]:
    if len(options) != 4:
        raise ValueError("Each question must have exactly four options.")
    cleaned = tuple(option.strip() for option in options)
    if any(not option for option in cleaned):
        raise ValueError("Option text cannot be empty.")
    return cleaned
