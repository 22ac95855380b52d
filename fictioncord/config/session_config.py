"""Story session timing, limits and storage configuration.

Environment Variables:
- FICTIONCORD_ENROLL_HOURS: Enrollment window (default: 24, min: 1, max: 168)
- FICTIONCORD_PROMPT_HOURS: Prompt collection window (default: 24, min: 1, max: 168)
- FICTIONCORD_VOTE_HOURS: Voting window (default: 24, min: 1, max: 168)
- FICTIONCORD_FIRST_TURN_HOURS: First writing turn (default: 24, min: 1, max: 168)
- FICTIONCORD_TURN_HOURS: Every later writing turn (default: 24, min: 1, max: 168)
- FICTIONCORD_TICK_INTERVAL_SECONDS: Scheduler tick (default: 60, min: 1, max: 3600)
- FICTIONCORD_MAX_PROMPT_LENGTH: Prompt character limit (default: 300, min: 1, max: 4000)
- FICTIONCORD_MAX_TURN_LENGTH: Turn character limit (default: 1500, min: 1, max: 4000)
- FICTIONCORD_STORE_URL: SQLAlchemy URL; when set, sessions are stored in a database
- FICTIONCORD_STATE_PATH: JSON state file used otherwise (default: state.json)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fictioncord.domain.services.session_transitions import PhaseDurations


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


# =============================================================================
# Phase windows
# =============================================================================

DEFAULT_PHASE_HOURS = 24
MIN_PHASE_HOURS = 1
# One week
MAX_PHASE_HOURS = 168

# =============================================================================
# Scheduler
# =============================================================================

DEFAULT_TICK_INTERVAL_SECONDS = 60
MIN_TICK_INTERVAL_SECONDS = 1
MAX_TICK_INTERVAL_SECONDS = 3600

# =============================================================================
# Submission limits
# =============================================================================

DEFAULT_MAX_PROMPT_LENGTH = 300
DEFAULT_MAX_TURN_LENGTH = 1500
MIN_TEXT_LENGTH_LIMIT = 1
# Chat platform message ceiling
MAX_TEXT_LENGTH_LIMIT = 4000

DEFAULT_STATE_PATH = "state.json"


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for story session deadlines, scheduler cadence and limits.

    Attributes:
        enroll_hours: Length of the enrollment window.
        prompt_hours: Length of prompt collection.
        vote_hours: Length of voting.
        first_turn_hours: Deadline for the first writing turn.
        turn_hours: Deadline for every later turn.
        tick_interval_seconds: How often the scheduler scans sessions.
        max_prompt_length: Character limit for a prompt.
        max_turn_length: Character limit for a story turn.
        store_url: SQLAlchemy URL for the session table, if any.
        state_path: JSON state file used when store_url is unset.
    """

    enroll_hours: int = DEFAULT_PHASE_HOURS
    prompt_hours: int = DEFAULT_PHASE_HOURS
    vote_hours: int = DEFAULT_PHASE_HOURS
    first_turn_hours: int = DEFAULT_PHASE_HOURS
    turn_hours: int = DEFAULT_PHASE_HOURS
    tick_interval_seconds: int = DEFAULT_TICK_INTERVAL_SECONDS
    max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH
    max_turn_length: int = DEFAULT_MAX_TURN_LENGTH
    store_url: Optional[str] = None
    state_path: str = DEFAULT_STATE_PATH

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for name in (
            "enroll_hours",
            "prompt_hours",
            "vote_hours",
            "first_turn_hours",
            "turn_hours",
        ):
            value = getattr(self, name)
            if not MIN_PHASE_HOURS <= value <= MAX_PHASE_HOURS:
                raise ValueError(
                    f"{name} must be between {MIN_PHASE_HOURS} "
                    f"and {MAX_PHASE_HOURS}, got {value}"
                )
        if (
            not MIN_TICK_INTERVAL_SECONDS
            <= self.tick_interval_seconds
            <= MAX_TICK_INTERVAL_SECONDS
        ):
            raise ValueError(
                f"tick_interval_seconds must be between {MIN_TICK_INTERVAL_SECONDS} "
                f"and {MAX_TICK_INTERVAL_SECONDS}, got {self.tick_interval_seconds}"
            )
        for name in ("max_prompt_length", "max_turn_length"):
            value = getattr(self, name)
            if not MIN_TEXT_LENGTH_LIMIT <= value <= MAX_TEXT_LENGTH_LIMIT:
                raise ValueError(
                    f"{name} must be between {MIN_TEXT_LENGTH_LIMIT} "
                    f"and {MAX_TEXT_LENGTH_LIMIT}, got {value}"
                )

    @property
    def phase_durations(self) -> PhaseDurations:
        """Get the deadline windows as timedeltas for the transition functions."""
        return PhaseDurations(
            enroll=timedelta(hours=self.enroll_hours),
            prompt=timedelta(hours=self.prompt_hours),
            vote=timedelta(hours=self.vote_hours),
            first_turn=timedelta(hours=self.first_turn_hours),
            turn=timedelta(hours=self.turn_hours),
        )

    @classmethod
    def from_environment(cls) -> SessionConfig:
        """Create config from environment variables with defaults.

        Out-of-range numbers are clamped into range; unparsable numbers
        fall back to the default.

        Returns:
            SessionConfig with values from environment or defaults.
        """

        def hours(key: str) -> int:
            return _clamp(
                _get_int_env(key, DEFAULT_PHASE_HOURS), MIN_PHASE_HOURS, MAX_PHASE_HOURS
            )

        def length(key: str, default: int) -> int:
            return _clamp(
                _get_int_env(key, default), MIN_TEXT_LENGTH_LIMIT, MAX_TEXT_LENGTH_LIMIT
            )

        tick = _clamp(
            _get_int_env(
                "FICTIONCORD_TICK_INTERVAL_SECONDS", DEFAULT_TICK_INTERVAL_SECONDS
            ),
            MIN_TICK_INTERVAL_SECONDS,
            MAX_TICK_INTERVAL_SECONDS,
        )

        return cls(
            enroll_hours=hours("FICTIONCORD_ENROLL_HOURS"),
            prompt_hours=hours("FICTIONCORD_PROMPT_HOURS"),
            vote_hours=hours("FICTIONCORD_VOTE_HOURS"),
            first_turn_hours=hours("FICTIONCORD_FIRST_TURN_HOURS"),
            turn_hours=hours("FICTIONCORD_TURN_HOURS"),
            tick_interval_seconds=tick,
            max_prompt_length=length(
                "FICTIONCORD_MAX_PROMPT_LENGTH", DEFAULT_MAX_PROMPT_LENGTH
            ),
            max_turn_length=length(
                "FICTIONCORD_MAX_TURN_LENGTH", DEFAULT_MAX_TURN_LENGTH
            ),
            store_url=os.environ.get("FICTIONCORD_STORE_URL") or None,
            state_path=os.environ.get("FICTIONCORD_STATE_PATH") or DEFAULT_STATE_PATH,
        )


# Pre-defined configurations for common use cases

DEFAULT_SESSION_CONFIG = SessionConfig()

# Testing config with a fast scheduler tick
TEST_SESSION_CONFIG = SessionConfig(tick_interval_seconds=1)
