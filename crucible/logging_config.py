"""Logging configuration for Crucible.

Configures the root logger to write to stdout. Library modules only call
logging.getLogger(__name__); the CLI and server call setup_logging().
"""

import logging
import os
import sys


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger to output to stdout.

    Args:
        verbose: If True, sets log level to DEBUG
    """
    logger = logging.getLogger()

    env_verbose = os.getenv("CRUCIBLE_VERBOSE", "").lower() in ("1", "true", "yes")
    log_level = logging.DEBUG if (verbose or env_verbose) else logging.INFO
    logger.setLevel(log_level)

    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(console_handler)

    logging.getLogger("crucible").debug("Logging initialized at %s", logging.getLevelName(log_level))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger (typically __name__)."""
    return logging.getLogger(name)
