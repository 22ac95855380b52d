"""Configuration module for Fictioncord.

Available Configurations:
- SessionConfig: Phase windows, scheduler tick, submission limits, store selection
"""

from fictioncord.config.session_config import (
    DEFAULT_SESSION_CONFIG,
    TEST_SESSION_CONFIG,
    SessionConfig,
)

__all__ = [
    "SessionConfig",
    "DEFAULT_SESSION_CONFIG",
    "TEST_SESSION_CONFIG",
]
