"""Settings for the model that writes quiz questions."""

GROQ_API_KEY_ENV: str = "GROQ_API_KEY"
GROQ_MODEL_ENV: str = "GROQ_MODEL"
DEFAULT_GROQ_MODEL: str = "llama-3.1-8b-instant"
GENERATION_TEMPERATURE: float = 0.7
# Room for roughly ten questions with explanations.
GENERATION_MAX_TOKENS: int = 4096
