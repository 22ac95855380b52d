"""Domain errors for Fictioncord.

All exceptions inherit from FictioncordError.
"""

from fictioncord.domain.errors.story_session import (
    AlreadyActiveError,
    AlreadyEnrolledError,
    NoSessionError,
    NotAuthorizedError,
    NotEligibleError,
    NotYourTurnError,
    PromptCapReachedError,
    StorySessionError,
    SubmissionTooLongError,
    WrongPhaseError,
)

__all__: list[str] = [
    "AlreadyActiveError",
    "AlreadyEnrolledError",
    "NoSessionError",
    "NotAuthorizedError",
    "NotEligibleError",
    "NotYourTurnError",
    "PromptCapReachedError",
    "StorySessionError",
    "SubmissionTooLongError",
    "WrongPhaseError",
]
