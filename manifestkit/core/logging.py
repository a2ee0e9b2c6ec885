"""Logging configuration utilities for manifestkit."""
import logging
import os


def setup_logging(level: str | None = None) -> None:
    """Configure root logging based on the LOG_LEVEL environment variable."""
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
