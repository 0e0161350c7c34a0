from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .json_formatter import JSONFormatter

_LOGGER_NAME = "moviedb"
_INSTALLED_ATTR = "_moviedb_installed"


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _level_from_env() -> int:
    level = logging.getLevelName(os.getenv("MOVIEDB_LOG_LEVEL", "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=path,
        maxBytes=_env_int("MOVIEDB_LOG_MAX_BYTES", 5_000_000),
        backupCount=_env_int("MOVIEDB_LOG_BACKUP_COUNT", 5),
        encoding="utf-8",
    )


def configure_logging(log_file: str | Path | None = None) -> logging.Logger:
    """Send ``moviedb`` records (the executor logs as ``moviedb.http``) to stderr as JSON.

    ``log_file`` or ``MOVIEDB_LOG_FILE`` adds a rotating file copy. Calling this
    again replaces the handlers it installed earlier, so settings can be changed
    at runtime without duplicating output.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(_level_from_env())
    logger.propagate = False

    for handler in [h for h in logger.handlers if getattr(h, _INSTALLED_ATTR, False)]:
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(stream=sys.stderr)]
    target = log_file or os.getenv("MOVIEDB_LOG_FILE")
    if target:
        handlers.append(_file_handler(Path(target)))

    formatter = JSONFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _INSTALLED_ATTR, True)
        logger.addHandler(handler)
    return logger
