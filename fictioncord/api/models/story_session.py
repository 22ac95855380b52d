"""Story session API request/response models.

Chat command handlers translate slash commands into these requests.
Participant, channel and message references are opaque platform ids.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, PlainSerializer

from fictioncord.domain.models.session_status import SessionStatus
from fictioncord.domain.models.story_session import StorySession

# ISO 8601 with Z suffix
DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]


class StartSessionRequest(BaseModel):
    """Request to start a session (/startfictioncord).

    Attributes:
        channel_id: Channel the session announces in.
        actor_id: Participant starting the session; becomes the leader.
    """

    channel_id: str = Field(..., min_length=1)
    actor_id: str = Field(..., min_length=1)


class ActorRequest(BaseModel):
    """Request carrying only the acting participant (join, end, skip)."""

    actor_id: str = Field(..., min_length=1)


class ResetSessionRequest(BaseModel):
    """Request to reset a session (/resetfictioncord).

    Attributes:
        actor_id: Participant requesting the reset.
        is_admin: Whether the platform reports the actor as a server admin.
    """

    actor_id: str = Field(..., min_length=1)
    is_admin: bool = False


class TextSubmissionRequest(BaseModel):
    """Prompt or turn text from a participant.

    Length limits are enforced by the session, not here, so the reply
    names the configured limit.
    """

    actor_id: str = Field(..., min_length=1)
    text: str


class ThreadMessageRequest(BaseModel):
    """A message observed in a thread, forwarded for the story thread guard."""

    thread_id: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
    author_is_bot: bool = False
    message_ref: str = Field(..., min_length=1)
    content: Optional[str] = None


class PromptModel(BaseModel):
    author_id: str
    text: str


class StoryTurnModel(BaseModel):
    author_id: str
    text: str
    timestamp: DateTimeWithZ


class SessionResponse(BaseModel):
    """Full view of a running session."""

    server_id: str
    channel_id: str
    leader_id: str
    phase: str
    started_at: DateTimeWithZ
    ends_at: DateTimeWithZ
    writers: list[str]
    prompts: list[PromptModel]
    story: list[StoryTurnModel]
    current_writer_id: Optional[str] = None
    selected_prompt_index: Optional[int] = None
    vote_message_id: Optional[str] = None
    thread_id: Optional[str] = None

    @classmethod
    def from_session(cls, session: StorySession) -> SessionResponse:
        return cls(
            server_id=session.server_id,
            channel_id=session.channel_id,
            leader_id=session.leader_id,
            phase=session.phase.value,
            started_at=session.started_at,
            ends_at=session.ends_at,
            writers=list(session.writers),
            prompts=[PromptModel(author_id=p.author_id, text=p.text) for p in session.prompts],
            story=[
                StoryTurnModel(author_id=t.author_id, text=t.text, timestamp=t.timestamp)
                for t in session.story
            ],
            current_writer_id=session.current_writer_id,
            selected_prompt_index=session.selected_prompt_index,
            vote_message_id=session.vote_message_id,
            thread_id=session.thread_id,
        )


class SkipStepResponse(BaseModel):
    """Result of a forced transition.

    Attributes:
        removed: True when the transition ended the session (no writers
            or no prompts).
        session: The advanced session, absent when removed.
    """

    removed: bool
    session: Optional[SessionResponse] = None


class EndSessionResponse(BaseModel):
    """The finished story, as published."""

    server_id: str
    story: list[StoryTurnModel]


class SessionStatusResponse(BaseModel):
    """Phase-specific status (/statusfictioncord)."""

    server_id: str
    phase: str
    ends_at: DateTimeWithZ
    time_remaining_seconds: int
    leader_id: str
    writers: list[str]
    prompt_count: int
    max_prompts: int
    current_writer_id: Optional[str] = None
    message: str

    @classmethod
    def from_status(cls, status: SessionStatus) -> SessionStatusResponse:
        return cls(
            server_id=status.server_id,
            phase=status.phase.value,
            ends_at=status.ends_at,
            time_remaining_seconds=int(status.time_remaining.total_seconds()),
            leader_id=status.leader_id,
            writers=list(status.writers),
            prompt_count=status.prompt_count,
            max_prompts=status.max_prompts,
            current_writer_id=status.current_writer_id,
            message=status.message,
        )


class ThreadMessageResponse(BaseModel):
    redacted: bool


class RulesResponse(BaseModel):
    text: str


class SessionErrorResponse(BaseModel):
    """RFC 7807 error body."""

    type: str
    title: str
    status: int
    detail: str
    instance: str
