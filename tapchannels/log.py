"""
log.py

Responsibility: Configure process-wide logging for the CLI.

Diagnostics go to stderr so generated-file listings and errors never mix with
anything a release pipeline may capture from stdout.
"""

from __future__ import annotations

import logging
import os
import sys

from yachalk import chalk

LOG_LEVEL_ENV = "TAPCHANNELS_LOG_LEVEL"

LOG_FORMAT = "[%(levelname)s] %(message)s"
DEBUG_LOG_FORMAT = "[%(levelname)s] [%(filename)s:%(lineno)d] %(message)s"

_LEVEL_NAMES = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class ChalkFormatter(logging.Formatter):
    """Colour whole records by severity."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return chalk.red(message)
        if record.levelno >= logging.WARNING:
            return chalk.yellow(message)
        if record.levelno >= logging.INFO:
            return chalk.green(message)
        return chalk.gray(message)


def resolve_log_level(value: str | None) -> int | None:
    """
    Map "DEBUG", "info", "10", ... to a logging level; None for unknown or empty input.
    """
    if not value:
        return None
    v = value.strip().upper()
    if v.isdigit():
        return int(v)
    return _LEVEL_NAMES.get(v)


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger with a single stderr handler.

    The level comes from `level`, then $TAPCHANNELS_LOG_LEVEL, then INFO.
    """
    resolved = resolve_log_level(level) or resolve_log_level(os.environ.get(LOG_LEVEL_ENV)) or logging.INFO

    root = logging.getLogger()
    root.setLevel(resolved)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ChalkFormatter(LOG_FORMAT if resolved >= logging.INFO else DEBUG_LOG_FORMAT))
    root.addHandler(handler)
