"""Story session metrics for Prometheus exposition.

Counters for phase transitions, reminders, collaborator failures, vote
tally fallbacks and session terminations. Services take the collector
as an optional dependency; tests pass one built on a private registry.
"""

from __future__ import annotations

import os
import threading

from prometheus_client import CollectorRegistry, Counter

# Thread lock for singleton initialization
_metrics_lock = threading.Lock()


class SessionMetricsCollector:
    """Collects story session metrics for Prometheus.

    Attributes:
        phase_transitions_total: Transitions by from/to phase and trigger.
        reminders_total: Reminders fired by phase and window.
        collaborator_failures_total: Failed collaborator calls by operation.
        vote_tally_fallbacks_total: Tallies that fell back to the first prompt.
        sessions_terminated_total: Removed sessions by reason.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize session metrics collector.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")

        self.phase_transitions_total = Counter(
            name="fictioncord_phase_transitions_total",
            documentation="Story session phase transitions",
            labelnames=["from_phase", "to_phase", "trigger", "environment"],
            registry=self._registry,
        )
        self.reminders_total = Counter(
            name="fictioncord_reminders_total",
            documentation="Deadline reminders fired",
            labelnames=["phase", "window", "environment"],
            registry=self._registry,
        )
        self.collaborator_failures_total = Counter(
            name="fictioncord_collaborator_failures_total",
            documentation="Chat collaborator calls that raised",
            labelnames=["operation", "environment"],
            registry=self._registry,
        )
        self.vote_tally_fallbacks_total = Counter(
            name="fictioncord_vote_tally_fallbacks_total",
            documentation="Vote tallies that fell back to the first prompt",
            labelnames=["environment"],
            registry=self._registry,
        )
        self.sessions_terminated_total = Counter(
            name="fictioncord_sessions_terminated_total",
            documentation="Story sessions removed, by reason",
            labelnames=["reason", "environment"],
            registry=self._registry,
        )

    def record_transition(self, from_phase: str, to_phase: str, trigger: str) -> None:
        """Record a phase transition.

        Args:
            from_phase: Phase value before the transition.
            to_phase: Phase value after it, or "removed".
            trigger: What caused it: "skip", "expiry" or "command".
        """
        self.phase_transitions_total.labels(
            from_phase=from_phase,
            to_phase=to_phase,
            trigger=trigger,
            environment=self._environment,
        ).inc()

    def record_reminder(self, phase: str, window: str) -> None:
        self.reminders_total.labels(
            phase=phase, window=window, environment=self._environment
        ).inc()

    def record_collaborator_failure(self, operation: str) -> None:
        self.collaborator_failures_total.labels(
            operation=operation, environment=self._environment
        ).inc()

    def record_vote_tally_fallback(self) -> None:
        self.vote_tally_fallbacks_total.labels(environment=self._environment).inc()

    def record_termination(self, reason: str) -> None:
        self.sessions_terminated_total.labels(
            reason=reason, environment=self._environment
        ).inc()

    def get_registry(self) -> CollectorRegistry:
        """Get the collector registry.

        Returns:
            The Prometheus collector registry.
        """
        return self._registry


# Singleton instance
_session_metrics_collector: SessionMetricsCollector | None = None


def get_session_metrics_collector() -> SessionMetricsCollector:
    """Get the singleton SessionMetricsCollector instance (thread-safe).

    Uses double-checked locking for lazy initialization.
    """
    global _session_metrics_collector
    if _session_metrics_collector is None:
        with _metrics_lock:
            if _session_metrics_collector is None:
                _session_metrics_collector = SessionMetricsCollector()
    return _session_metrics_collector


def reset_session_metrics_collector() -> None:
    """Reset the singleton collector (for testing only)."""
    global _session_metrics_collector
    with _metrics_lock:
        _session_metrics_collector = None
