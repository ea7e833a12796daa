"""Structlog setup for Habitta Core.

Library modules log through ``get_logger(__name__)``; only the CLI prints.
Events render as JSON lines unless ``HABITTA_LOG_FORMAT=console``.
"""
from __future__ import annotations

import os
from typing import Literal

import logging
import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]


def _renderer(fmt: str):
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer(sort_keys=True)


def configure_logging(level: LogLevel = "INFO", fmt: LogFormat | None = None) -> None:
    numeric_level = getattr(logging, level)
    logging.basicConfig(format="%(message)s", level=numeric_level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(fmt or os.getenv("HABITTA_LOG_FORMAT", "json")),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        # Module loggers must pick up a level set later by the CLI
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "habitta"):
    return structlog.get_logger(name)


# Initialize default config
configure_logging()
