"""Logging setup utilities for cmdrelay.

Two logger families matter at runtime: the package's own ``cmdrelay.*``
loggers and uvicorn's ``uvicorn.*`` loggers for the server process. Both
are driven by the same :class:`LoggingConfig` so the server writes a
single consistent stream.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from cmdrelay.config.settings import LoggingConfig

PACKAGE_LOGGER = "cmdrelay"


def _level(config: LoggingConfig) -> int:
    return getattr(logging, config.level.upper(), logging.INFO)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the ``cmdrelay`` logger.

    Installs a stderr handler and, when ``config.file`` is set, a file
    handler. Handlers from a previous call are closed and replaced.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(_level(config))

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    package_logger.debug("Logging initialized at %s level", config.level)


def uvicorn_log_config(config: LoggingConfig | None = None) -> dict[str, Any]:
    """Build a ``logging.config.dictConfig`` mapping for ``uvicorn.run``.

    Routes uvicorn's error and access logs through the same format, level
    and optional file as the package logger. Existing loggers are left
    enabled so ``cmdrelay.*`` keeps the handlers from :func:`setup_logging`.
    """
    if config is None:
        config = LoggingConfig()
    level = logging.getLevelName(_level(config))

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stderr",
        },
    }
    if config.file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": config.file,
        }
    names = list(handlers)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": config.format}},
        "handlers": handlers,
        "loggers": {
            "uvicorn": {"handlers": names, "level": level, "propagate": False},
            "uvicorn.error": {"level": level},
            "uvicorn.access": {"handlers": names, "level": level, "propagate": False},
        },
    }
