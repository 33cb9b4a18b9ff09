"""Structured logging configuration using structlog, plus HTTP debug helpers."""

import logging
import os
from collections.abc import Mapping
from typing import Any

import structlog

BODY_LOG_LIMIT = 1000


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structlog with JSON or console rendering.

    Rendering format is controlled by the LOG_FORMAT environment variable:
    - "json" for production (machine-readable)
    - "console" for development (human-readable, default)

    Call once from the embedding application. The clients never call this
    themselves, so an application's own logging setup is left alone.
    """
    log_format = os.environ.get("LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

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

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    sdk_logger = logging.getLogger("buda")
    sdk_logger.handlers.clear()
    sdk_logger.addHandler(handler)
    sdk_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    sdk_logger.propagate = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)


def truncate_body(body: Any, limit: int = BODY_LOG_LIMIT) -> Any:
    """Shorten long string bodies for debug output."""
    if isinstance(body, str) and len(body) > limit:
        return f"{body[:limit]}... (truncated)"
    return body


def mask_api_key(headers: Mapping[str, str], key_header: str) -> dict[str, str]:
    """Copy headers with all but the last four characters of the API key masked."""
    masked = dict(headers)
    key = masked.get(key_header)
    if key:
        masked[key_header] = "*" * max(len(key) - 4, 0) + key[-4:]
    return masked
