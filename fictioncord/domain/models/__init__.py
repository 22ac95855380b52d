"""Domain models for Fictioncord."""

from fictioncord.domain.models.intents import (
    Announce,
    ArchiveThread,
    Intent,
    OpenDiscussionThread,
    OpenPoll,
    PostTurn,
)
from fictioncord.domain.models.session_status import SessionStatus
from fictioncord.domain.models.story_session import (
    MAX_PROMPTS,
    VOTE_MARKERS,
    EnrollPhase,
    PhaseState,
    Prompt,
    PromptCollectionPhase,
    ReminderFlags,
    SessionPhase,
    StorySession,
    StoryTurn,
    VotingPhase,
    WritingPhase,
    truncate_to_millis,
)

__all__ = [
    "Announce",
    "ArchiveThread",
    "EnrollPhase",
    "Intent",
    "MAX_PROMPTS",
    "OpenDiscussionThread",
    "OpenPoll",
    "PhaseState",
    "PostTurn",
    "Prompt",
    "PromptCollectionPhase",
    "ReminderFlags",
    "SessionPhase",
    "SessionStatus",
    "StorySession",
    "StoryTurn",
    "VOTE_MARKERS",
    "VotingPhase",
    "WritingPhase",
    "truncate_to_millis",
]
