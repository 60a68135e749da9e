"""Logging setup for command-line use.

Library modules only create module-level loggers; handlers are attached here
so embedding applications keep control of their own logging configuration.
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
LOG_LEVEL_ENV = "CHOREWHEEL_LOG_LEVEL"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Args:
        level: Level name (e.g. "DEBUG"). Falls back to the
            CHOREWHEEL_LOG_LEVEL environment variable, then WARNING.

    Returns:
        The configured package logger.
    """
    level_name = (level or os.getenv(LOG_LEVEL_ENV, "WARNING")).upper()
    logger = logging.getLogger("chorewheel")
    logger.setLevel(getattr(logging, level_name, logging.WARNING))
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
