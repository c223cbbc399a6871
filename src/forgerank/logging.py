"""Logging utilities for the ranking system."""

from __future__ import annotations

import logging
from typing import Any, ContextManager

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON output.

    Values bound through ``bind_run`` (job id, batch size) are merged into
    every event emitted while the binding is active.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=log_level, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


def bind_run(**values: Any) -> ContextManager[None]:
    """Bind run-level fields to all log events inside the ``with`` block."""
    return structlog.contextvars.bound_contextvars(**values)
