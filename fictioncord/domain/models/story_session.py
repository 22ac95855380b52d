"""Story session aggregate.

A StorySession is the full record of one storytelling run for a chat
server. The phase-specific fields (deadline, reminder latches, poll and
thread references, turn pointer) live on a tagged union of phase
variants, so a field is only present in the phases where it means
something.

Phase path:
    ENROLL -> COLLECT_PROMPTS -> VOTE_PROMPT -> WRITING -> (removed)

Invariants (checked in __post_init__):
- writers contains no duplicates
- writers is non-empty outside ENROLL
- len(prompts) <= MAX_PROMPTS
- current_writer_index is a valid index into writers while WRITING
- selected_prompt_index is a valid index into prompts while WRITING

Times are stored as epoch milliseconds; callers truncate with
truncate_to_millis() so a saved session reloads unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, ClassVar, Union


class SessionPhase(Enum):
    """Ordered stages of a story session."""

    ENROLL = "enroll"
    COLLECT_PROMPTS = "collect_prompts"
    VOTE_PROMPT = "vote_prompt"
    WRITING = "writing"


# One reaction marker per prompt option; the prompt cap follows from it.
VOTE_MARKERS: tuple[str, ...] = (
    "1️⃣",
    "2️⃣",
    "3️⃣",
    "4️⃣",
    "5️⃣",
    "6️⃣",
    "7️⃣",
    "8️⃣",
    "9️⃣",
    "🔟",
    "🅰️",
    "🅱️",
    "🆎",
    "🆑",
    "🆒",
    "🆓",
    "🆔",
    "🆕",
    "🆖",
    "🆗",
    "🆙",
    "🆚",
)

MAX_PROMPTS = len(VOTE_MARKERS)


@dataclass(frozen=True)
class ReminderFlags:
    """Latches for the two reminders of a single deadline.

    Attributes:
        twelve_hour: The 12-hour reminder has fired.
        one_hour: The 1-hour reminder has fired.
    """

    twelve_hour: bool = False
    one_hour: bool = False


@dataclass(frozen=True)
class Prompt:
    """A prompt idea submitted during prompt collection."""

    author_id: str
    text: str


@dataclass(frozen=True)
class StoryTurn:
    """One submitted piece of the story."""

    author_id: str
    text: str
    timestamp: datetime


@dataclass(frozen=True)
class EnrollPhase:
    """Writers join until the enrollment deadline."""

    kind: ClassVar[SessionPhase] = SessionPhase.ENROLL

    ends_at: datetime
    reminders: ReminderFlags = field(default_factory=ReminderFlags)


@dataclass(frozen=True)
class PromptCollectionPhase:
    """Writers submit prompt ideas until the collection deadline."""

    kind: ClassVar[SessionPhase] = SessionPhase.COLLECT_PROMPTS

    ends_at: datetime
    reminders: ReminderFlags = field(default_factory=ReminderFlags)


@dataclass(frozen=True)
class VotingPhase:
    """Participants react on the poll until the voting deadline.

    Attributes:
        vote_message_id: Opaque reference to the poll artifact, set once
            the collaborator has posted it.
    """

    kind: ClassVar[SessionPhase] = SessionPhase.VOTE_PROMPT

    ends_at: datetime
    reminders: ReminderFlags = field(default_factory=ReminderFlags)
    vote_message_id: str | None = None


@dataclass(frozen=True)
class WritingPhase:
    """Writers take turns; ends_at is the current turn's deadline.

    Attributes:
        selected_prompt_index: Winning prompt, fixed for the rest of the session.
        current_writer_index: Index into writers of the writer on turn.
        thread_id: Opaque reference to the discussion thread, if created.
    """

    kind: ClassVar[SessionPhase] = SessionPhase.WRITING

    ends_at: datetime
    selected_prompt_index: int
    current_writer_index: int = 0
    thread_id: str | None = None
    reminders: ReminderFlags = field(default_factory=ReminderFlags)


PhaseState = Union[EnrollPhase, PromptCollectionPhase, VotingPhase, WritingPhase]

# Persisted document keys, shared with sessions written by earlier deployments.
_DEADLINE_KEYS: dict[SessionPhase, str] = {
    SessionPhase.ENROLL: "enrollEndsAt",
    SessionPhase.COLLECT_PROMPTS: "promptEndsAt",
    SessionPhase.VOTE_PROMPT: "voteEndsAt",
    SessionPhase.WRITING: "turnEndsAt",
}

REMINDER_PREFIXES: dict[SessionPhase, str] = {
    SessionPhase.ENROLL: "enroll",
    SessionPhase.COLLECT_PROMPTS: "prompt",
    SessionPhase.VOTE_PROMPT: "vote",
    SessionPhase.WRITING: "turn",
}


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, the resolution of the stored document."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _to_millis(value: datetime) -> int:
    return (value - _EPOCH) // _MILLISECOND


def _from_millis(value: int | float) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


@dataclass(frozen=True, eq=True)
class StorySession:
    """The full mutable record of one storytelling run, as an immutable value.

    Every change produces a new instance via the with_* methods; the
    stored copy is replaced wholesale.

    Attributes:
        server_id: Chat server the session belongs to (store key).
        channel_id: Channel announcements are posted to.
        leader_id: Participant who started the session.
        started_at: Creation time (UTC).
        phase_state: Current phase variant with its phase-only fields.
        writers: Enrolled writers in join order (defines turn order).
        prompts: Submitted prompts in submission order.
        story: Submitted turns in order.
    """

    server_id: str
    channel_id: str
    leader_id: str
    started_at: datetime
    phase_state: PhaseState
    writers: tuple[str, ...] = ()
    prompts: tuple[Prompt, ...] = ()
    story: tuple[StoryTurn, ...] = ()

    def __post_init__(self) -> None:
        """Validate session invariants."""
        if len(set(self.writers)) != len(self.writers):
            raise ValueError("writers must not contain duplicates")
        if len(self.prompts) > MAX_PROMPTS:
            raise ValueError(
                f"prompts must hold at most {MAX_PROMPTS} entries, got {len(self.prompts)}"
            )
        if self.phase is not SessionPhase.ENROLL and not self.writers:
            raise ValueError(f"writers must be non-empty in phase {self.phase.value}")
        if isinstance(self.phase_state, WritingPhase):
            if not 0 <= self.phase_state.current_writer_index < len(self.writers):
                raise ValueError(
                    f"current_writer_index {self.phase_state.current_writer_index} "
                    f"out of range for {len(self.writers)} writers"
                )
            if not 0 <= self.phase_state.selected_prompt_index < len(self.prompts):
                raise ValueError(
                    f"selected_prompt_index {self.phase_state.selected_prompt_index} "
                    f"out of range for {len(self.prompts)} prompts"
                )

    @classmethod
    def create(
        cls,
        server_id: str,
        channel_id: str,
        leader_id: str,
        now: datetime,
        enroll_duration: timedelta,
    ) -> StorySession:
        """Create a session in ENROLL with the leader auto-enrolled.

        Args:
            server_id: Chat server id.
            channel_id: Channel for announcements.
            leader_id: Participant starting the session.
            now: Current time from the time authority.
            enroll_duration: Length of the enrollment window.

        Returns:
            New StorySession.
        """
        return cls(
            server_id=server_id,
            channel_id=channel_id,
            leader_id=leader_id,
            started_at=now,
            phase_state=EnrollPhase(ends_at=now + enroll_duration),
            writers=(leader_id,),
        )

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self.phase_state.kind

    @property
    def ends_at(self) -> datetime:
        """Deadline of the current phase (or of the current turn)."""
        return self.phase_state.ends_at

    @property
    def reminders(self) -> ReminderFlags:
        return self.phase_state.reminders

    @property
    def current_writer_index(self) -> int | None:
        if isinstance(self.phase_state, WritingPhase):
            return self.phase_state.current_writer_index
        return None

    @property
    def current_writer_id(self) -> str | None:
        index = self.current_writer_index
        if index is None:
            return None
        return self.writers[index]

    @property
    def selected_prompt_index(self) -> int | None:
        if isinstance(self.phase_state, WritingPhase):
            return self.phase_state.selected_prompt_index
        return None

    @property
    def selected_prompt(self) -> Prompt | None:
        index = self.selected_prompt_index
        if index is None:
            return None
        return self.prompts[index]

    @property
    def vote_message_id(self) -> str | None:
        if isinstance(self.phase_state, VotingPhase):
            return self.phase_state.vote_message_id
        return None

    @property
    def thread_id(self) -> str | None:
        if isinstance(self.phase_state, WritingPhase):
            return self.phase_state.thread_id
        return None

    def is_writer(self, participant_id: str) -> bool:
        return participant_id in self.writers

    def can_end(self, participant_id: str) -> bool:
        """Check whether a participant may end the session.

        The leader may always end it; while writing, so may the writer
        currently on turn.
        """
        if participant_id == self.leader_id:
            return True
        return (
            self.phase is SessionPhase.WRITING
            and self.current_writer_id == participant_id
        )

    def time_left(self, now: datetime) -> timedelta:
        return self.ends_at - now

    # ------------------------------------------------------------------
    # Copy-on-write updates
    # ------------------------------------------------------------------

    def with_writer(self, participant_id: str) -> StorySession:
        return replace(self, writers=self.writers + (participant_id,))

    def with_prompt(self, prompt: Prompt) -> StorySession:
        return replace(self, prompts=self.prompts + (prompt,))

    def with_turn(self, turn: StoryTurn) -> StorySession:
        return replace(self, story=self.story + (turn,))

    def with_phase_state(self, phase_state: PhaseState) -> StorySession:
        return replace(self, phase_state=phase_state)

    def with_reminders(self, reminders: ReminderFlags) -> StorySession:
        return replace(self, phase_state=replace(self.phase_state, reminders=reminders))

    def with_vote_message(self, vote_message_id: str) -> StorySession:
        """Record the poll reference.

        Raises:
            ValueError: If the session is not in VOTE_PROMPT.
        """
        if not isinstance(self.phase_state, VotingPhase):
            raise ValueError(f"cannot attach poll in phase {self.phase.value}")
        return self.with_phase_state(
            replace(self.phase_state, vote_message_id=vote_message_id)
        )

    def with_thread(self, thread_id: str) -> StorySession:
        """Record the discussion thread reference.

        Raises:
            ValueError: If the session is not in WRITING.
        """
        if not isinstance(self.phase_state, WritingPhase):
            raise ValueError(f"cannot attach thread in phase {self.phase.value}")
        return self.with_phase_state(replace(self.phase_state, thread_id=thread_id))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON document."""
        reminders: dict[str, bool] = {}
        for phase, prefix in REMINDER_PREFIXES.items():
            flags = self.reminders if phase is self.phase else ReminderFlags()
            reminders[f"{prefix}12"] = flags.twelve_hour
            reminders[f"{prefix}1"] = flags.one_hour

        document: dict[str, Any] = {
            "guildId": self.server_id,
            "channelId": self.channel_id,
            "leaderId": self.leader_id,
            "startedAt": _to_millis(self.started_at),
            "phase": self.phase.value,
            "writers": list(self.writers),
            "prompts": [{"userId": p.author_id, "text": p.text} for p in self.prompts],
            "story": [
                {
                    "userId": t.author_id,
                    "text": t.text,
                    "timestamp": _to_millis(t.timestamp),
                }
                for t in self.story
            ],
            "currentWriterIndex": self.current_writer_index or 0,
            "voteMessageId": self.vote_message_id,
            "selectedPromptIndex": self.selected_prompt_index,
            "threadId": self.thread_id,
            "reminders": reminders,
        }
        for phase, key in _DEADLINE_KEYS.items():
            document[key] = _to_millis(self.ends_at) if phase is self.phase else None
        return document

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StorySession:
        """Rebuild a session from its persisted JSON document.

        Documents without leaderId fall back to the first writer.

        Raises:
            ValueError: If the document is missing required fields or
                violates a session invariant.
        """
        try:
            phase = SessionPhase(data["phase"])
            ends_at = _from_millis(data[_DEADLINE_KEYS[phase]])
            writers = tuple(data.get("writers") or ())
            raw_reminders = data.get("reminders") or {}
            prefix = REMINDER_PREFIXES[phase]
            reminders = ReminderFlags(
                twelve_hour=bool(raw_reminders.get(f"{prefix}12", False)),
                one_hour=bool(raw_reminders.get(f"{prefix}1", False)),
            )

            phase_state: PhaseState
            if phase is SessionPhase.ENROLL:
                phase_state = EnrollPhase(ends_at=ends_at, reminders=reminders)
            elif phase is SessionPhase.COLLECT_PROMPTS:
                phase_state = PromptCollectionPhase(ends_at=ends_at, reminders=reminders)
            elif phase is SessionPhase.VOTE_PROMPT:
                phase_state = VotingPhase(
                    ends_at=ends_at,
                    reminders=reminders,
                    vote_message_id=data.get("voteMessageId"),
                )
            else:
                phase_state = WritingPhase(
                    ends_at=ends_at,
                    selected_prompt_index=int(data.get("selectedPromptIndex") or 0),
                    current_writer_index=int(data.get("currentWriterIndex") or 0),
                    thread_id=data.get("threadId"),
                    reminders=reminders,
                )

            leader_id = data.get("leaderId") or (writers[0] if writers else None)
            if leader_id is None:
                raise ValueError("session document has neither leaderId nor writers")

            return cls(
                server_id=str(data["guildId"]),
                channel_id=str(data["channelId"]),
                leader_id=leader_id,
                started_at=_from_millis(data.get("startedAt") or data[_DEADLINE_KEYS[phase]]),
                phase_state=phase_state,
                writers=writers,
                prompts=tuple(
                    Prompt(author_id=p["userId"], text=p["text"])
                    for p in data.get("prompts") or ()
                ),
                story=tuple(
                    StoryTurn(
                        author_id=t["userId"],
                        text=t["text"],
                        timestamp=_from_millis(t["timestamp"]),
                    )
                    for t in data.get("story") or ()
                ),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed session document: {exc!r}") from exc
