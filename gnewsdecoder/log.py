"""Loguru sink setup for the command-line entry point."""

import sys

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: str = "WARNING") -> None:
    """Replace loguru's default handler with a colourised stderr sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=level.upper(),
        colorize=True,
    )
    logger.debug(f"Logging configured: level={level.upper()}")
