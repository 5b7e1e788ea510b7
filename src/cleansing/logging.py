"""Structlog-based logging for the cleansing operators.

Library modules log through structlog; no print() in library code.
Log lines go to stderr so command output on stdout stays machine-readable.
"""
from __future__ import annotations

import logging
import sys
from typing import Literal

import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # Resolved per call so redirected stderr (tests, pipes) is honoured
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: LogLevel | str = "INFO") -> None:
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=numeric_level)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "cleansing"):
    return structlog.get_logger(name)
