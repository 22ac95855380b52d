"""Prometheus metrics for Fictioncord."""

from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
    get_session_metrics_collector,
    reset_session_metrics_collector,
)

__all__ = [
    "SessionMetricsCollector",
    "get_session_metrics_collector",
    "reset_session_metrics_collector",
]
