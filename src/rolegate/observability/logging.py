"""
rolegate.observability.logging

Structured logging for the authorization service.

Responsibilities:
- Configure `structlog` for JSON logs on stdout.
- Scrub one-time codes, TOTP secrets and bearer tokens before rendering.
- Hand out bound loggers.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Keys whose values must never reach a log line.
_SECRET_KEYS = frozenset({"code", "secret", "access_token", "authorization", "codes"})


def configure_logging(*, service_name: str, level: str) -> None:
    """
    Security-relevant fields (principal_id, route, aal) are passed as keys,
    never interpolated into the message, so audit queries can filter on them.
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _static_fields(service=service_name),
            _redact_secrets,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _static_fields(**fields: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def _redact_secrets(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in _SECRET_KEYS.intersection(event_dict):
        # None means "deliberately not logged" (e.g. code outside dev).
        if event_dict[key] is not None and not event_dict.get("reveal", False):
            event_dict[key] = "***"
    event_dict.pop("reveal", None)
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
