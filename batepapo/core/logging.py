# batepapo/core/logging.py

import logging
import os
import sys


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers and the level they are held at
LIBRARY_LEVELS = {
    "pymongo": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def setup_logging() -> None:
    """
    Configure application-wide logging.

    - Root level from LOG_LEVEL (default: INFO)
    - One stdout handler, unless a server already installed one
    - Driver chatter and per-request access lines held back
    """
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root_logger.addHandler(handler)

    for name, library_level in LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Module logger.

    Usage:
        from batepapo.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("✓ ready")
    """
    return logging.getLogger(name)
