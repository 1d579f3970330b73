"""Logging infrastructure for oops.

Every module logs through ``get_logger(__name__)``, which keeps loggers
under the ``oops`` namespace. Nothing is configured on import: the
embedding application (or a front end) calls ``setup_logging()`` once to
attach a Rich console handler and a rotating log file.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.logging import RichHandler

from oops.core.constants import LOG_LEVEL_ENV, LOGGER_NAME

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

DEFAULT_LOG_DIR = Path.home() / ".oops" / "logs"
DEFAULT_LOG_FILE = DEFAULT_LOG_DIR / "oops.log"

MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB per file
BACKUP_COUNT = 5

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_log_level_from_env() -> int:
    """Console level from OOPS_LOG_LEVEL; WARNING if unset or unknown."""
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    return LOG_LEVEL_MAP.get(name, logging.WARNING)


def get_default_log_file() -> Path:
    """Default log path (``~/.oops/logs/oops.log``), creating its directory."""
    DEFAULT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    return DEFAULT_LOG_FILE


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    # The file keeps everything regardless of the console level
    handler.setLevel(logging.DEBUG)
    return handler


def _console_handler(level: int, rich_console: bool) -> logging.Handler:
    if rich_console:
        return RichHandler(
            level=level,
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
        )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    return handler


def setup_logging(
    level: int | None = None,
    log_file: Path | None = None,
    console_output: bool = True,
    rich_console: bool = True,
    file_logging: bool = True,
) -> None:
    """Attach handlers to the ``oops`` logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Console level. Falls back to OOPS_LOG_LEVEL, then WARNING.
        log_file: Log file path. Defaults to ``~/.oops/logs/oops.log``.
        console_output: Log to stderr.
        rich_console: Format the console with Rich.
        file_logging: Log to a rotating file (always at DEBUG).
    """
    if level is None:
        level = get_log_level_from_env()

    handlers: list[logging.Handler] = []
    if file_logging:
        handlers.append(_file_handler(log_file or get_default_log_file()))
    if console_output:
        handlers.append(_console_handler(level, rich_console))

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(logging.DEBUG)
    for old in package_logger.handlers:
        old.close()
    package_logger.handlers.clear()
    for handler in handlers:
        package_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``oops`` namespace.

    Module names already under ``oops`` (``__name__`` inside the package)
    are used as they are; anything else is prefixed with ``oops.``.
    """
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
