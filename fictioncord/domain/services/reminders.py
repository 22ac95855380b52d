"""Reminder cadence and deadline expiry checks.

Each deadline gets at most two reminders: one once fewer than twelve
hours remain and one in the final hour. A reminder latches its flag on
the phase variant, so it cannot repeat until a new deadline replaces
the flags.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from fictioncord.domain.models.intents import Announce
from fictioncord.domain.models.story_session import (
    MAX_PROMPTS,
    ReminderFlags,
    SessionPhase,
    StorySession,
)
from fictioncord.domain.services.story_formatting import mention

TWELVE_HOURS = timedelta(hours=12)
ONE_HOUR = timedelta(hours=1)


class ReminderWindow(Enum):
    """Reminder thresholds before a deadline."""

    TWELVE_HOUR = "12h"
    ONE_HOUR = "1h"


@dataclass(frozen=True)
class ReminderResult:
    """A fired reminder: the session with its flag latched, plus the announcement."""

    session: StorySession
    window: ReminderWindow
    intent: Announce


def due_reminder(time_left: timedelta, flags: ReminderFlags) -> ReminderWindow | None:
    """Return the reminder window that should fire now, if any.

    The two windows never both fire in one evaluation: the 12-hour
    window is checked first and the 1-hour window only otherwise.

    Example:
        >>> due_reminder(timedelta(hours=11), ReminderFlags())
        <ReminderWindow.TWELVE_HOUR: '12h'>
        >>> due_reminder(timedelta(hours=11), ReminderFlags(twelve_hour=True)) is None
        True
    """
    if ONE_HOUR < time_left <= TWELVE_HOURS and not flags.twelve_hour:
        return ReminderWindow.TWELVE_HOUR
    if timedelta(0) < time_left <= ONE_HOUR and not flags.one_hour:
        return ReminderWindow.ONE_HOUR
    return None


def reminder_text(session: StorySession, window: ReminderWindow) -> str:
    """Render the reminder announcement for the session's current phase."""
    twelve = window is ReminderWindow.TWELVE_HOUR
    phase = session.phase

    if phase is SessionPhase.ENROLL:
        if twelve:
            return (
                "Reminder: enrollment is still open. "
                "We are waiting for writers to join with /joinfictioncord."
            )
        return (
            "Reminder: enrollment closes in about 1 hour. "
            "Join with /joinfictioncord if you want to write."
        )
    if phase is SessionPhase.COLLECT_PROMPTS:
        if twelve:
            return (
                "Reminder: prompt collection is open. "
                "We are waiting for prompt ideas with /submitprompt. "
                f"({len(session.prompts)}/{MAX_PROMPTS})"
            )
        return (
            "Reminder: prompt collection closes in about 1 hour. "
            "Submit with /submitprompt."
        )
    if phase is SessionPhase.VOTE_PROMPT:
        if twelve:
            return (
                "Reminder: voting is open. "
                "React to the poll message to pick your favorite prompt."
            )
        return (
            "Reminder: voting closes in about 1 hour. "
            "React to the poll message to vote."
        )

    writer = mention(session.current_writer_id or "")
    if twelve:
        return f"Reminder: we are waiting on {writer} to submit their turn with /submitturn."
    return f"Reminder: {writer} has about 1 hour left to submit with /submitturn."


def evaluate_reminder(session: StorySession, now: datetime) -> ReminderResult | None:
    """Fire the due reminder for the session, if any.

    Returns:
        ReminderResult with the latched session, or None when no
        reminder is due.
    """
    window = due_reminder(session.time_left(now), session.reminders)
    if window is None:
        return None

    if window is ReminderWindow.TWELVE_HOUR:
        flags = replace(session.reminders, twelve_hour=True)
    else:
        flags = replace(session.reminders, one_hour=True)

    return ReminderResult(
        session=session.with_reminders(flags),
        window=window,
        intent=Announce(session.channel_id, reminder_text(session, window)),
    )


def is_expired(session: StorySession, now: datetime) -> bool:
    return now >= session.ends_at
