"""Structured logging configuration with structlog.

Production renders one JSON object per line; every other environment
gets the colored console renderer. The level comes from LOG_LEVEL.

Log Entry Format (production):
    {
        "timestamp": "2026-01-01T00:00:00.000000Z",
        "level": "info",
        "event": "phase_advanced",
        "correlation_id": "uuid",
        "service": "story_session",
        "server_id": "...",
        ...additional context
    }

Usage:
    from fictioncord.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")

    log = structlog.get_logger().bind(service="story_session")
    log.info("session_started", server_id=server_id)
"""

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from fictioncord.infrastructure.observability.correlation import (
    correlation_id_processor,
)

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog once at startup.

    Args:
        environment: 'production' for JSON output, anything else for
            the console renderer.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_server_context(server_id: str, actor_id: str | None = None) -> None:
    """Bind the server (and acting participant) to every log line of this request."""
    context = {"server_id": server_id}
    if actor_id is not None:
        context["actor_id"] = actor_id
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
