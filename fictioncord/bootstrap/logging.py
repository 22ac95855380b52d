"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

import os

from fictioncord.infrastructure.observability import configure_structlog

ENVIRONMENT_VAR = "ENVIRONMENT"
DEFAULT_ENVIRONMENT = "development"


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)


def configure_logging() -> None:
    """Configure structlog from the ENVIRONMENT variable."""
    configure_structlog(environment=get_environment())


__all__ = ["configure_logging", "get_environment"]
