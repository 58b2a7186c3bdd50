"""Logging setup for match-score.

All package loggers hang off ``matchscore`` and share one stderr handler;
stdout carries scoring results and reports. Third-party loggers that chat
at INFO (LiteLLM, aiosqlite) are held at WARNING unless the package runs
at DEBUG.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from matchscore.config.settings import Settings

LOGGER_NAME = "matchscore"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

THIRD_PARTY_LOGGERS = ("LiteLLM", "LiteLLM Router", "LiteLLM Proxy", "aiosqlite")

_configured = False


def _resolve_level(level: str | None, settings: Settings | None) -> int:
    if level is None and settings is not None:
        level = settings.log_level
    return getattr(logging, (level or "INFO").upper(), logging.INFO)


def configure_logging(
    level: str | None = None,
    settings: Settings | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure and return the package logger.

    Args:
        level: Explicit log level; wins over ``settings.log_level``.
        settings: Application settings to read the level from.
        stream: Handler stream (defaults to stderr).

    Returns:
        The ``matchscore`` logger.
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    log_level = _resolve_level(level, settings)
    logger.setLevel(log_level)

    if not _configured:
        logger.handlers.clear()
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True

    for handler in logger.handlers:
        handler.setLevel(log_level)

    third_party_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger for a component, e.g. ``get_logger("cli")``."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Undo ``configure_logging`` (used by tests)."""
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)

    _configured = False
