# -*- coding: utf-8 -*-
"""Logging setup for spatialio.

Library modules only create loggers under the ``spatialio`` hierarchy and never configure
handlers themselves. Applications (and the command-line interface) call ``setup_logging``.
"""

import logging
import os
import sys

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SIMPLE_FORMAT = "%(levelname)s: %(message)s"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logging(verbosity=0, log_file=None, format_string=None):
    """Configure logging for the spatialio package.

    Args:
        verbosity: Verbosity level (0=INFO, 1=DEBUG, -1=WARNING, -2=ERROR)
        log_file: Optional path to log file for file output
        format_string: Optional custom format string for log messages

    Environment Variables:
        SPATIALIO_LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The configured ``spatialio`` logger
    """
    if verbosity >= 1:
        level = logging.DEBUG
    elif verbosity == 0:
        level = logging.INFO
    elif verbosity == -1:
        level = logging.WARNING
    else:
        level = logging.ERROR

    env_level = os.environ.get("SPATIALIO_LOG_LEVEL", "").upper()
    if env_level in _LEVELS:
        level = getattr(logging, env_level)

    if format_string is None:
        format_string = DEFAULT_FORMAT if verbosity >= 0 else SIMPLE_FORMAT

    logger = logging.getLogger("spatialio")
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a")
        except OSError as e:
            logger.warning(f"Failed to create log file {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

    logger.debug(f"Logging configured: level={logging.getLevelName(level)}")
    return logger
