"""Unit tests for SessionMetricsCollector."""

from prometheus_client import CollectorRegistry, generate_latest

from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
    get_session_metrics_collector,
    reset_session_metrics_collector,
)
from tests.helpers import counter_value


class TestSessionMetricsCollector:
    """Tests for the story session counters."""

    def test_record_transition(self, metrics) -> None:
        """Test transitions are labelled by phase pair and trigger."""
        metrics.record_transition("enroll", "collect_prompts", "expiry")
        metrics.record_transition("enroll", "collect_prompts", "expiry")

        assert (
            counter_value(
                metrics,
                "fictioncord_phase_transitions_total",
                from_phase="enroll",
                to_phase="collect_prompts",
                trigger="expiry",
            )
            == 2
        )

    def test_record_reminder_and_termination(self, metrics) -> None:
        """Test reminder and termination counters."""
        metrics.record_reminder("writing", "1h")
        metrics.record_termination("no_prompts")

        assert (
            counter_value(metrics, "fictioncord_reminders_total", phase="writing", window="1h")
            == 1
        )
        assert (
            counter_value(
                metrics, "fictioncord_sessions_terminated_total", reason="no_prompts"
            )
            == 1
        )

    def test_private_registries_are_isolated(self) -> None:
        """Test two collectors never share samples."""
        first = SessionMetricsCollector(registry=CollectorRegistry())
        second = SessionMetricsCollector(registry=CollectorRegistry())

        first.record_vote_tally_fallback()

        assert counter_value(first, "fictioncord_vote_tally_fallbacks_total") == 1
        assert counter_value(second, "fictioncord_vote_tally_fallbacks_total") == 0

    def test_exposition_names(self, metrics) -> None:
        """Test the counters appear in the text exposition."""
        metrics.record_collaborator_failure("create_poll")

        output = generate_latest(metrics.get_registry()).decode()

        assert "fictioncord_collaborator_failures_total" in output
        assert 'operation="create_poll"' in output


class TestSessionMetricsSingleton:
    def test_singleton_and_reset(self) -> None:
        """Test the process-wide collector is reused until reset."""
        reset_session_metrics_collector()
        first = get_session_metrics_collector()

        assert get_session_metrics_collector() is first

        reset_session_metrics_collector()
        assert get_session_metrics_collector() is not first
        reset_session_metrics_collector()
