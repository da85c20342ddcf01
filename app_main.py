"""Application entry point for the QuizRoom API server."""

from __future__ import annotations

from quiz_room.constants.about import APP_NAME
from quiz_room.constants.generation_constants import GROQ_API_KEY_ENV
from quiz_room.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_room.core.quiz_manager import QuizManager
from quiz_room.core.services.groq_question_generator import generator_from_env
from quiz_room.server.api_server import run_api_server
from quiz_room.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging and serve the API until interrupted."""
    logger = configure_logging()
    logger.info("Starting %s on %s:%d", APP_NAME, DEFAULT_HOST, DEFAULT_PORT)

    generator = generator_from_env()
    if generator is None:
        logger.warning("%s is not set; quiz creation will fail until it is.", GROQ_API_KEY_ENV)
    quiz_manager = QuizManager(generator=generator)
    run_api_server(quiz_manager=quiz_manager, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
