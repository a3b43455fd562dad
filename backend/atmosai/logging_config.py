"""Structured logging setup with API key redaction."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


SENSITIVE_KEY_PARTS = ("api_key", "apikey", "authorization", "secret", "password")


def redact_sensitive(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Replace values of credential-like keys before rendering."""
    for key in list(event_dict.keys()):
        key_lower = key.lower()
        if any(part in key_lower for part in SENSITIVE_KEY_PARTS):
            event_dict[key] = "REDACTED"
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
