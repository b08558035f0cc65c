"""
Logging setup for kbcli-builder.

Records up to WARNING go to a plain stderr StreamHandler; ERROR and above are
shown once, through the rich error console.
"""

import logging
import os

from .config import Config
from .console import console_manager

logger = logging.getLogger("kbcli_builder")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _BelowErrorFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


class ConsoleManagerHandler(logging.Handler):
    """Routes ERROR records to the shared console manager."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            console_manager.print_error(record.getMessage())
        except Exception:
            self.handleError(record)


def _resolve_level() -> int:
    level_name = os.environ.get("KBCLI_BUILDER_LOG_LEVEL")
    if not level_name:
        try:
            level_name = Config().get("system.log_level", "WARNING")
        except ValueError:
            level_name = "WARNING"
    level = logging.getLevelName(str(level_name).upper())
    return level if isinstance(level, int) else logging.WARNING


def init_logging(level: str | None = None) -> None:
    """Configure the package logger; safe to call more than once."""
    logger.setLevel(
        logging.getLevelName(level.upper()) if level else _resolve_level()
    )

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        stream_handler.addFilter(_BelowErrorFilter())
        logger.addHandler(stream_handler)

    if not any(isinstance(h, ConsoleManagerHandler) for h in logger.handlers):
        console_handler = ConsoleManagerHandler(level=logging.ERROR)
        logger.addHandler(console_handler)
