"""Quiz-related constants shared across the core and API layers."""

OPTION_LABELS: tuple[str, ...] = ("A", "B", "C", "D")
UNSET_ANSWER: int = -1
SECONDS_PER_MINUTE: int = 60
TICK_INTERVAL_SECONDS: float = 1.0

GOOD_SCORE_THRESHOLD: int = 80
FAIR_SCORE_THRESHOLD: int = 60
BUCKET_GOOD: str = "Good"
BUCKET_FAIR: str = "Fair"
BUCKET_NEEDS_IMPROVEMENT: str = "Needs Improvement"

UNKNOWN_STUDENT_NAME: str = "Unknown Student"
