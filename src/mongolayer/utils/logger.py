"""
Logging utility for mongolayer.
Provides consistent logging configuration across all modules.

Log level priority:
1. Function parameter (level=)
2. Environment variable MONGOLAYER_LOG_LEVEL (library-specific)
3. Environment variable LOG_LEVEL (shared with the host application)
4. Default: INFO; unknown level names also fall back to INFO

Levels are fixed when a module first asks for its logger, so set the
environment before importing mongolayer.
"""

import logging
import os
import sys


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (usually __name__)
        level: Log level override (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        log_level = (
            level
            or os.getenv("MONGOLAYER_LOG_LEVEL")
            or os.getenv("LOG_LEVEL", "INFO")
        )
        logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logger.level)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)

        # Prevent duplicate logs
        logger.propagate = False

    return logger
