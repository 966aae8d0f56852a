"""
Logging setup for the relay service.
"""
import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Route ``mockmate.*`` loggers to stderr.

    Args:
        level: Log level name, e.g. ``"INFO"`` or ``"DEBUG"``
    """
    logger = logging.getLogger("mockmate")
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
