"""
Loguru setup.

Importing this module configures loguru from ``settings`` and routes the
standard library loggers used by uvicorn, fastapi and sqlalchemy into it.
Everything else imports ``logger`` from here.
"""

import inspect
import logging
import sys

from loguru import logger

from ..settings import Settings, settings

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "sqlalchemy")
LOG_FILE_NAME = "portfolio.log"


class InterceptHandler(logging.Handler):
    """Forwards standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Report the original caller, not the logging module
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(config: Settings) -> None:
    """Replace loguru sinks with a console sink and, optionally, a rotating file."""
    log_format = config.log_format or DEFAULT_FORMAT

    logger.remove()
    logger.add(sys.stderr, level=config.log_level, format=log_format, diagnose=False)

    if config.log_to_file:
        log_dir = config.get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / LOG_FILE_NAME,
            level=config.log_level,
            format=log_format,
            rotation=config.log_rotation,
            retention=config.log_retention,
            compression="zip",
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in INTERCEPTED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False


configure_logging(settings)

__all__ = ["configure_logging", "logger"]
