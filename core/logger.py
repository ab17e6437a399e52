"""Structured logging — JSON in prod, coloured console in dev.

The package only obtains loggers; the host application calls
:func:`setup_logging` once at startup, before the first account task runs.
Credential fields are masked by :func:`redact_secrets` before rendering.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, MutableMapping

import structlog

from config.settings import settings

# Event keys whose values must never reach a log sink in clear.
SECRET_KEYS = frozenset({
    "api_key",
    "secret",
    "passphrase",
    "private_key",
    "polymarket_session",
    "signature",
})


def _mask(value: Any) -> str:
    text = str(value)
    if len(text) <= 8:
        return "***"
    return f"{text[:4]}...{text[-4:]}"


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask credential values, keeping a short prefix and suffix for correlation."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = _mask(event_dict[key])
    return event_dict


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and route it through the stdlib root logger.

    Parameters
    ----------
    level:
        Root level; defaults to ``settings.LOG_LEVEL``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.APP_ENV == "dev":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel((level or settings.LOG_LEVEL).upper())

    structlog.contextvars.bind_contextvars(app=settings.APP_NAME, env=settings.APP_ENV)
