"""Read-only status summary of a running session."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from fictioncord.domain.models.story_session import SessionPhase


@dataclass(frozen=True)
class SessionStatus:
    """Phase-specific snapshot returned by the status command.

    Attributes:
        server_id: Chat server id.
        phase: Current phase.
        ends_at: Deadline of the phase (or of the current turn).
        time_remaining: Time until ends_at (never negative).
        leader_id: Session leader.
        writers: Enrolled writers in turn order.
        prompt_count: Number of prompts collected so far.
        max_prompts: Prompt cap.
        current_writer_id: Writer on turn (WRITING only).
        message: Human-readable status text.
    """

    server_id: str
    phase: SessionPhase
    ends_at: datetime
    time_remaining: timedelta
    leader_id: str
    writers: tuple[str, ...]
    prompt_count: int
    max_prompts: int
    current_writer_id: str | None
    message: str
