import logging
import sys

from backend.core import config


def configure_logging() -> None:
    """
    Configure logging for the whole API.
    Call this once before the FastAPI app starts serving.
    """
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
