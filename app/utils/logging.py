"""Application logging setup with loguru.

Configures a single stderr sink (console or JSON lines) and routes records
emitted through the standard ``logging`` module (uvicorn, SQLAlchemy) into
loguru so every log line shares one format.

Usage:
    from loguru import logger
    logger.info("Published {count} scheduled articles", count=3)
"""

import logging
import sys

from loguru import logger

from app.config import settings

_CONSOLE_FORMAT: str = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)

_configured: bool = False


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the logging call
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure loguru sinks and intercept standard logging. Idempotent.

    Args:
        level: Minimum log level, defaults to settings.LOG_LEVEL
        json_logs: Serialize records as JSON, defaults to settings.LOG_JSON
    """
    global _configured
    if _configured:
        return

    log_level: str = (level or settings.LOG_LEVEL).upper()
    serialize: bool = settings.LOG_JSON if json_logs is None else json_logs

    logger.remove()
    if serialize:
        logger.add(sys.stderr, level=log_level, serialize=True, enqueue=True)
    else:
        logger.add(sys.stderr, level=log_level, format=_CONSOLE_FORMAT, enqueue=True, backtrace=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    _configured = True
