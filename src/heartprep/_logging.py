"""Package logger for heartprep.

Messages go to stdout as ``name | level | message``. Messages about one recording channel
are prefixed with its label through :func:`channel_logger`.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_formatter = logging.Formatter("%(name)s | %(levelname)s | %(message)s")


def _configure_default_logging() -> logging.Logger:
    logger = logging.getLogger(__package__)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        logger.propagate = False
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(_formatter)
        console_handler.setLevel(logging.INFO)
        logger.addHandler(console_handler)
    return logger


logger = _configure_default_logging()


class _ChannelAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        return f"Channel {self.extra['channel']}: {msg}", kwargs


def channel_logger(channel: int | str | None) -> logging.LoggerAdapter:
    """Return the package logger with every message prefixed by ``Channel <channel>:``."""
    return _ChannelAdapter(logger, {"channel": channel})


def _console_handlers() -> list[logging.Handler]:
    return [h for h in logger.handlers if not isinstance(h, logging.FileHandler)]


def get_log_level() -> LogLevel:
    """Return the level of the console output, e.g. to replay it in worker processes."""
    handlers = _console_handlers()
    level = handlers[0].level if handlers else logger.level
    return logging.getLevelName(level)


def set_log_level(log_level: LogLevel) -> None:
    """Set the level of the console output.

    File handlers added with :func:`set_log_file` keep their own level.

    Example:
        >>> set_log_level("WARNING")
    """
    numeric_level = logging.getLevelNamesMapping()[log_level]
    for handler in _console_handlers():
        handler.setLevel(numeric_level)
    file_levels = [h.level for h in logger.handlers if isinstance(h, logging.FileHandler)]
    logger.setLevel(min([numeric_level, *file_levels]))


def set_log_file(log_file: Path, log_level: LogLevel = "DEBUG") -> None:
    """Also write package logs to a rotating log file.

    A previously set log file is closed and replaced. The console keeps its level, so a
    DEBUG log file does not make the console verbose.

    Example:
        >>> set_log_file(Path("logs/heartprep.log"))
    """
    numeric_level = logging.getLevelNamesMapping()[log_level]
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
            logger.removeHandler(handler)

    file_handler = RotatingFileHandler(log_file, maxBytes=10_000_000, backupCount=3, encoding="utf-8")
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(_formatter)
    logger.addHandler(file_handler)
    logger.setLevel(min(logger.level, numeric_level))
