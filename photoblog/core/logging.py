"""
Log setup
=========

Everything goes through loguru. Standard library loggers (our modules,
uvicorn, SQLAlchemy) are forwarded to it, so one sink and one format
cover the whole process: JSON lines in production, coloured text elsewhere.
"""

import inspect
import logging
import sys

from loguru import logger

from photoblog.core.config import settings

FORWARDED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "sqlalchemy")

DEV_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <8}</level> "
    "<cyan>{name}:{line}</cyan> {message}"
)


class InterceptHandler(logging.Handler):
    """Hands standard library records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk past emit() and logging's own frames so {name}:{line} points at the caller
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    logger.remove()

    if settings.APP_ENV == "production":
        logger.add(sys.stderr, serialize=True, level="INFO", backtrace=False, diagnose=False)
    else:
        logger.add(
            sys.stderr,
            format=DEV_FORMAT,
            level="DEBUG" if settings.DEBUG else "INFO",
            colorize=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in FORWARDED_LOGGERS:
        forwarded = logging.getLogger(name)
        forwarded.handlers = [InterceptHandler()]
        forwarded.propagate = False

    # SQL echo only in debug
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DEBUG else logging.WARNING)
