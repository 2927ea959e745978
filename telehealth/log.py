"""
Logging bridge between Django and loguru.

Django, DRF and third-party libraries emit records through the standard
``logging`` module.  :class:`InterceptHandler` forwards those records
to loguru so that the whole process writes through a single sink.
``configure`` is referenced by ``settings.LOGGING_CONFIG``.
"""
from __future__ import annotations

import logging
import logging.config
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _stderr_sink(message) -> None:
    # sys.stderr is looked up on every write
    sys.stderr.write(message)


def configure(logging_settings: dict) -> None:
    """Apply the ``LOGGING`` dict and point loguru at stderr."""
    logging.config.dictConfig(logging_settings)
    level = logging_settings.get("root", {}).get("level", "INFO")
    logger.configure(handlers=[{"sink": _stderr_sink, "serialize": False, "level": level}])
