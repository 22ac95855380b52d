"""Application services for Fictioncord."""

from fictioncord.application.services.intent_dispatcher import (
    DispatchOutcome,
    IntentDispatcher,
)
from fictioncord.application.services.session_scheduler import (
    SessionScheduler,
    TickSummary,
)
from fictioncord.application.services.story_session_service import (
    StorySessionService,
)
from fictioncord.application.services.time_authority_service import (
    SystemTimeAuthority,
)
from fictioncord.application.services.vote_tally_service import VoteTallyService

__all__ = [
    "DispatchOutcome",
    "IntentDispatcher",
    "SessionScheduler",
    "StorySessionService",
    "SystemTimeAuthority",
    "TickSummary",
    "VoteTallyService",
]
