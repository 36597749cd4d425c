"""
Structured logging for the copy-trading API.

Every line carries level, UTC timestamp, event_type, the emitting module, and,
inside an HTTP request, the request_id/method/path bound by the request
middleware. LOG_FORMAT=json (default) renders one JSON object per line;
anything else renders colored console output.

This module imports nothing from backend_copytrade so any module can log at import time.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

SERVICE_NAME = "backend-copytrade"

# Keys every request-scoped line gets, so log queries can rely on them existing.
REQUEST_KEYS = ("request_id", "method", "path")


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's positional event becomes event_type (e.g. "fallback_tier_failed")."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _request_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Lines logged inside a request always carry the full request triple."""
    if "request_id" in event_dict:
        for key in REQUEST_KEYS:
            event_dict.setdefault(key, None)
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    fmt = (fmt or os.getenv("LOG_FORMAT") or "json").strip().lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _request_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.format_exc_info,
        _event_type,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger bound to the emitting module:

        logger = get_logger(__name__)
        logger.warning("fallback_tier_failed", intent="active_markets", source="blockchain", error="...")
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_request(request_id: str, **fields: Any) -> None:
    """Start a fresh request context; every line logged until the next call carries it."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **fields)
