"""Logging setup for BenchForge.

All BenchForge loggers live under the ``benchforge`` namespace and write to
stderr, so stdout carries nothing but the final report. Verbose mode also
routes the ``httpcore`` connection logs through the same handler.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Literal

ROOT_LOGGER = "benchforge"
TRANSPORT_LOGGER = "httpcore"

LogFormat = Literal["text", "json"]

_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_TEXT_DATEFMT = "%H:%M:%S"


class _JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message.

    Records logged from inside a client task also carry its ``task`` name.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, str] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        task_name = getattr(record, "taskName", None)
        if task_name:
            entry["task"] = task_name
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _make_handler(level: int, log_format: LogFormat) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt=_TEXT_DATEFMT))
    return handler


def setup_logging(
    level: int = logging.WARNING,
    *,
    log_format: LogFormat = "text",
) -> logging.Logger:
    """Install a single stderr handler on the ``benchforge`` logger.

    Calling it again replaces the previous handler, so a second run in the
    same process can switch level or format.

    Args:
        level: Threshold for BenchForge records.
        log_format: ``"text"`` for human-readable lines, ``"json"`` for
            one JSON object per line.

    Returns:
        The ``benchforge`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)

    logger.setLevel(level)
    logger.addHandler(_make_handler(level, log_format))
    logger.propagate = False
    return logger


def enable_transport_logging() -> logging.Logger:
    """Send ``httpcore`` debug records to the BenchForge handler.

    Call after :func:`setup_logging`.
    """
    handlers = logging.getLogger(ROOT_LOGGER).handlers
    transport = logging.getLogger(TRANSPORT_LOGGER)
    transport.setLevel(logging.DEBUG)
    transport.handlers = list(handlers)
    transport.propagate = False
    return transport


def get_logger(name: str) -> logging.Logger:
    """Return ``benchforge.<name>``, e.g. ``get_logger("engine.runner")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
