"""Test helpers for Fictioncord tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    enrolling_session and friends: build sessions already in a given phase
    counter_value: read a Prometheus counter sample

Usage:
    from tests.helpers import FakeTimeAuthority
"""

from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.metrics import counter_value
from tests.helpers.sessions import (
    enrolling_session,
    prompting_session,
    voting_session,
    writing_session,
)

__all__ = [
    "FakeTimeAuthority",
    "counter_value",
    "enrolling_session",
    "prompting_session",
    "voting_session",
    "writing_session",
]
