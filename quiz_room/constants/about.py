"""Static metadata describing QuizRoom."""

APP_NAME = "QuizRoom"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizRoom is a classroom quiz platform. Faculty turn study documents into "
    "scheduled multiple-choice quizzes, students take them in timed sessions, "
    "and results feed a leaderboard and a performance dashboard."
)
