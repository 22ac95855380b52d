"""Observability: structlog configuration and correlation ids."""

from fictioncord.infrastructure.observability.correlation import (
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from fictioncord.infrastructure.observability.logging import (
    bind_server_context,
    clear_request_context,
    configure_structlog,
)

__all__: list[str] = [
    "bind_server_context",
    "clear_request_context",
    "configure_structlog",
    "correlation_id_processor",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]
