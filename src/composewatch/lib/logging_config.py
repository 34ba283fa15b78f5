"""Logging configuration for composewatch.

All modules obtain loggers through :func:`get_logger` so that a single call to
:func:`setup_logging` from the CLI controls verbosity for the whole package.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER_NAME = "composewatch"

# Level names accepted on the command line and in config files
LEVEL_ALIASES: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def parse_log_level(level: str | None) -> int:
    """Convert a level name to a logging level, defaulting to INFO.

    Unknown names fall back to INFO rather than failing the run.
    """
    if not level:
        return logging.INFO
    return LEVEL_ALIASES.get(level.strip().upper(), logging.INFO)


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    level: str | None = None,
) -> None:
    """Configure the package logger.

    Args:
        verbose: Force DEBUG output
        quiet: Only emit errors
        level: Explicit level name (DEBUG, INFO, WARN, ERROR); ignored when
            verbose or quiet is set
    """
    if verbose:
        resolved = logging.DEBUG
    elif quiet:
        resolved = logging.ERROR
    else:
        resolved = parse_log_level(level)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(resolved)

    # Re-running setup (tests, repeated CLI invocations) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for a module within the package."""
    return logging.getLogger(name)
