"""Domain services for Fictioncord.

Pure functions over StorySession values: transitions, reminder cadence,
vote selection and text rendering. None of them perform I/O.
"""

from fictioncord.domain.services.reminders import (
    ReminderResult,
    ReminderWindow,
    due_reminder,
    evaluate_reminder,
    is_expired,
    reminder_text,
)
from fictioncord.domain.services.session_transitions import (
    DEFAULT_PHASE_DURATIONS,
    TERMINATED_ENDED,
    TERMINATED_NO_PROMPTS,
    TERMINATED_NO_WRITERS,
    TERMINATED_RESET,
    PhaseDurations,
    TransitionResult,
    advance_phase,
    authorize_skip,
    end_session,
    join_enrollment,
    reset_session,
    start_session,
    submit_prompt,
    submit_turn,
)
from fictioncord.domain.services.story_formatting import (
    build_status_message,
    rules_text,
)
from fictioncord.domain.services.vote_selection import (
    FALLBACK_PROMPT_INDEX,
    select_winning_index,
)

__all__ = [
    "DEFAULT_PHASE_DURATIONS",
    "FALLBACK_PROMPT_INDEX",
    "PhaseDurations",
    "ReminderResult",
    "ReminderWindow",
    "TERMINATED_ENDED",
    "TERMINATED_NO_PROMPTS",
    "TERMINATED_NO_WRITERS",
    "TERMINATED_RESET",
    "TransitionResult",
    "advance_phase",
    "authorize_skip",
    "build_status_message",
    "due_reminder",
    "end_session",
    "evaluate_reminder",
    "is_expired",
    "join_enrollment",
    "reset_session",
    "rules_text",
    "select_winning_index",
    "start_session",
    "submit_prompt",
    "submit_turn",
]
