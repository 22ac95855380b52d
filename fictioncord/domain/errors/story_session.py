"""Story session domain errors.

Every error here is a caller-visible validation failure: it is raised
before any mutation of the stored session, is never retried, and its
message is suitable for replying directly to the acting participant.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from fictioncord.domain.exceptions import FictioncordError

if TYPE_CHECKING:
    from fictioncord.domain.models.story_session import SessionPhase


class StorySessionError(FictioncordError):
    """Base class for story session errors."""

    pass


class NoSessionError(StorySessionError):
    """Raised when a command targets a server with no running session."""

    def __init__(self, server_id: str) -> None:
        self.server_id = server_id
        super().__init__("No active Fictioncord session.")


class AlreadyActiveError(StorySessionError):
    """Raised when starting a session while one is already running.

    Attributes:
        server_id: Server the session belongs to.
        started_at: When the running session was started.
        can_end: Whether the actor is allowed to end the running session.
    """

    def __init__(self, server_id: str, started_at: datetime, can_end: bool) -> None:
        self.server_id = server_id
        self.started_at = started_at
        self.can_end = can_end
        hint = (
            "You can use /theend to end the current session."
            if can_end
            else "If you are the leader or the current writer, you can use /theend to end it."
        )
        super().__init__(
            f"A Fictioncord session is already running (started "
            f"{started_at.strftime('%b %d, %Y, %I:%M %p')} UTC). "
            f"You cannot start a new one until it ends.\n{hint}"
        )


class WrongPhaseError(StorySessionError):
    """Raised when a command is not valid in the session's current phase.

    Attributes:
        current_phase: Phase the session is in.
        required_phase: Phase the command needs.
    """

    def __init__(
        self,
        current_phase: SessionPhase,
        required_phase: SessionPhase,
        message: str | None = None,
    ) -> None:
        self.current_phase = current_phase
        self.required_phase = required_phase
        super().__init__(
            message
            or f"This action needs phase {required_phase.value}, "
            f"but the session is in {current_phase.value}."
        )


class NotEligibleError(StorySessionError):
    """Raised when a non-writer tries to submit a prompt."""

    def __init__(self, actor_id: str) -> None:
        self.actor_id = actor_id
        super().__init__("Only enrolled writers can submit prompts.")


class AlreadyEnrolledError(StorySessionError):
    """Raised when an enrolled writer tries to join again."""

    def __init__(self, actor_id: str) -> None:
        self.actor_id = actor_id
        super().__init__("You are already enrolled.")


class PromptCapReachedError(StorySessionError):
    """Raised when the prompt list already holds one prompt per vote marker."""

    def __init__(self, max_prompts: int) -> None:
        self.max_prompts = max_prompts
        super().__init__(f"Prompt list is full (max {max_prompts}).")


class SubmissionTooLongError(StorySessionError):
    """Raised when submitted text is blank or exceeds its character limit.

    Attributes:
        length: Length of the rejected text.
        max_length: Configured limit.
    """

    def __init__(self, length: int, max_length: int) -> None:
        self.length = length
        self.max_length = max_length
        if length == 0:
            message = "Submission text must not be empty."
        else:
            message = (
                f"Submission is {length} characters; the limit is {max_length}."
            )
        super().__init__(message)


class NotYourTurnError(StorySessionError):
    """Raised when someone other than the current writer submits a turn."""

    def __init__(self, actor_id: str, current_writer_id: str) -> None:
        self.actor_id = actor_id
        self.current_writer_id = current_writer_id
        super().__init__(
            f"It is not your turn. Current writer is <@{current_writer_id}>."
        )


class NotAuthorizedError(StorySessionError):
    """Raised when the actor lacks the role an action requires.

    Attributes:
        actor_id: Participant who attempted the action.
        leader_id: Leader of the session, included in the reply.
        action: Short action name (end, skip, reset).
    """

    _REASONS = {
        "end": "Only the leader or current writer can end the story.",
        "skip": "Only the leader can skip steps.",
        "reset": "Only the leader or a server admin can reset.",
    }

    def __init__(self, actor_id: str, leader_id: str, action: str) -> None:
        self.actor_id = actor_id
        self.leader_id = leader_id
        self.action = action
        reason = self._REASONS.get(action, "You are not allowed to do that.")
        super().__init__(f"{reason} Leader is <@{leader_id}>.")
