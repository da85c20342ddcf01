"""Network configuration constants for the quiz platform."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
USER_ID_HEADER: str = "X-User-Id"
