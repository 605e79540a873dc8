"""Logging configuration for the API process."""

import logging

from examprep.config import settings


def configure_logging(level: str | None = None) -> logging.Logger:
    """Configure basic logging for the application and return its logger."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("examprep")
