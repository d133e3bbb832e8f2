"""Logging utilities for imagegen commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from .errors import ConfigError

_LOGGER_NAME = "imagegen"
_CONSOLE_FORMAT = "[imagegen] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the imagegen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send imagegen records to stderr and, when given, append them to log_file.

    Calling this again replaces the handlers from the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    _drop_handlers(logger)
    logger.setLevel(level)
    logger.propagate = False

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        try:
            sink = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot open log file {log_file}: {exc}") from exc
        # The file keeps debug records even when the console stays at INFO.
        logger.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


def reset_logging() -> None:
    """Detach imagegen handlers and hand records back to the root logger."""
    logger = logging.getLogger(_LOGGER_NAME)
    _drop_handlers(logger)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


__all__ = ["configure_logging", "get_logger", "reset_logging"]
