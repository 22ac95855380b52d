"""Pure session transitions.

Each function takes the current session (plus the current time and any
externally gathered input such as the tallied winner), validates the
command, and returns a TransitionResult holding the new session (or
None when the session is removed) and the intents to execute once the
new state is committed.

Validation always happens before a new session value is built, so a
raised error leaves the stored session untouched.

advance_phase() is the single phase-transition implementation. Both the
leader's skip command and the scheduler's deadline expiry call it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from fictioncord.domain.errors import (
    AlreadyEnrolledError,
    NotAuthorizedError,
    NotEligibleError,
    NotYourTurnError,
    PromptCapReachedError,
    SubmissionTooLongError,
    WrongPhaseError,
)
from fictioncord.domain.models.intents import (
    Announce,
    ArchiveThread,
    Intent,
    OpenDiscussionThread,
    OpenPoll,
    PostTurn,
)
from fictioncord.domain.models.story_session import (
    MAX_PROMPTS,
    VOTE_MARKERS,
    Prompt,
    PromptCollectionPhase,
    SessionPhase,
    StorySession,
    StoryTurn,
    VotingPhase,
    WritingPhase,
)
from fictioncord.domain.services.story_formatting import (
    build_poll_text,
    build_story,
    build_thread_title,
    build_writer_list,
    duration_hours,
    mention,
)
from fictioncord.domain.services.vote_selection import FALLBACK_PROMPT_INDEX

TERMINATED_NO_WRITERS = "no_writers"
TERMINATED_NO_PROMPTS = "no_prompts"
TERMINATED_ENDED = "ended"
TERMINATED_RESET = "reset"


@dataclass(frozen=True)
class PhaseDurations:
    """Lengths of each deadline window."""

    enroll: timedelta = timedelta(hours=24)
    prompt: timedelta = timedelta(hours=24)
    vote: timedelta = timedelta(hours=24)
    first_turn: timedelta = timedelta(hours=24)
    turn: timedelta = timedelta(hours=24)


DEFAULT_PHASE_DURATIONS = PhaseDurations()


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a transition.

    Attributes:
        server_id: Server the session belongs to.
        session: The new session, or None if the session was removed.
        intents: Side effects to execute after committing the session.
        from_phase: Phase before the transition.
        to_phase: Phase after the transition (None when removed).
        termination_reason: Why the session was removed, if it was.
    """

    server_id: str
    session: StorySession | None
    intents: tuple[Intent, ...]
    from_phase: SessionPhase
    to_phase: SessionPhase | None
    termination_reason: str | None = None

    @property
    def removed(self) -> bool:
        return self.session is None

    @property
    def phase_changed(self) -> bool:
        return self.from_phase is not self.to_phase


def _same_phase(session: StorySession, *intents: Intent) -> TransitionResult:
    return TransitionResult(
        server_id=session.server_id,
        session=session,
        intents=intents,
        from_phase=session.phase,
        to_phase=session.phase,
    )


def _terminated(
    session: StorySession, reason: str, *intents: Intent
) -> TransitionResult:
    return TransitionResult(
        server_id=session.server_id,
        session=None,
        intents=intents,
        from_phase=session.phase,
        to_phase=None,
        termination_reason=reason,
    )


def _require_phase(
    session: StorySession, phase: SessionPhase, message: str
) -> None:
    if session.phase is not phase:
        raise WrongPhaseError(session.phase, phase, message)


def _check_length(text: str, max_length: int) -> None:
    if not text.strip():
        raise SubmissionTooLongError(0, max_length)
    if len(text) > max_length:
        raise SubmissionTooLongError(len(text), max_length)


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------


def start_session(
    server_id: str,
    channel_id: str,
    actor_id: str,
    now: datetime,
    durations: PhaseDurations = DEFAULT_PHASE_DURATIONS,
) -> TransitionResult:
    """Open enrollment with the actor as leader and first writer.

    The caller checks that no session exists for the server.
    """
    session = StorySession.create(
        server_id=server_id,
        channel_id=channel_id,
        leader_id=actor_id,
        now=now,
        enroll_duration=durations.enroll,
    )
    return _same_phase(
        session,
        Announce(
            channel_id,
            "Hello everyone. We are about to start a Fictioncord session. "
            "Who wants to join in as a writer? "
            f"You have {duration_hours(durations.enroll)} hours.\n"
            "Participate with /joinfictioncord.",
        ),
    )


def join_enrollment(session: StorySession, actor_id: str) -> TransitionResult:
    """Append the actor to the writer list.

    Raises:
        WrongPhaseError: If enrollment is closed.
        AlreadyEnrolledError: If the actor is already a writer.
    """
    _require_phase(
        session,
        SessionPhase.ENROLL,
        "You can't join right now. Enrollment is closed.",
    )
    if session.is_writer(actor_id):
        raise AlreadyEnrolledError(actor_id)

    return _same_phase(
        session.with_writer(actor_id),
        Announce(
            session.channel_id,
            f"{mention(actor_id)} is now a writer for this session.",
        ),
    )


def submit_prompt(
    session: StorySession,
    actor_id: str,
    text: str,
    max_length: int,
) -> TransitionResult:
    """Append a prompt idea from an enrolled writer.

    Raises:
        WrongPhaseError: If prompt collection is not open.
        NotEligibleError: If the actor is not a writer.
        PromptCapReachedError: If MAX_PROMPTS prompts are already in.
        SubmissionTooLongError: If the text is blank or too long.
    """
    _require_phase(
        session,
        SessionPhase.COLLECT_PROMPTS,
        "You can't submit prompts right now. Prompt collection is not open.",
    )
    if not session.is_writer(actor_id):
        raise NotEligibleError(actor_id)
    if len(session.prompts) >= MAX_PROMPTS:
        raise PromptCapReachedError(MAX_PROMPTS)
    _check_length(text, max_length)

    return _same_phase(
        session.with_prompt(Prompt(author_id=actor_id, text=text)),
        Announce(
            session.channel_id,
            f'Prompt received from {mention(actor_id)}: "{text}"',
        ),
    )


def submit_turn(
    session: StorySession,
    actor_id: str,
    text: str,
    now: datetime,
    max_length: int,
    durations: PhaseDurations = DEFAULT_PHASE_DURATIONS,
) -> TransitionResult:
    """Append the current writer's turn and pass the turn on.

    The turn pointer advances cyclically, the turn deadline restarts and
    the turn reminders are cleared.

    Raises:
        WrongPhaseError: If the session is not writing.
        NotYourTurnError: If the actor is not the writer on turn.
        SubmissionTooLongError: If the text is blank or too long.
    """
    _require_phase(
        session,
        SessionPhase.WRITING,
        "You can't submit a turn right now.",
    )
    current_writer_id = session.current_writer_id
    assert current_writer_id is not None  # WRITING always has a writer on turn
    if actor_id != current_writer_id:
        raise NotYourTurnError(actor_id, current_writer_id)
    _check_length(text, max_length)

    updated = session.with_turn(StoryTurn(author_id=actor_id, text=text, timestamp=now))
    updated = _rotate_writer(updated, now, durations.turn)
    next_writer_id = updated.current_writer_id or ""

    return _same_phase(
        updated,
        PostTurn(
            session.channel_id,
            session.thread_id,
            f"Turn {len(updated.story)} by {mention(actor_id)}:\n{text}",
        ),
        Announce(
            session.channel_id,
            f"Turn received. Next writer is {mention(next_writer_id)}. "
            f"You have {duration_hours(durations.turn)} hours to submit with /submitturn.",
        ),
    )


def end_session(session: StorySession, actor_id: str) -> TransitionResult:
    """Publish the story and remove the session.

    Raises:
        NotAuthorizedError: Unless the actor is the leader or, while
            writing, the writer on turn.
    """
    if not session.can_end(actor_id):
        raise NotAuthorizedError(actor_id, session.leader_id, "end")

    intents: list[Intent] = [
        Announce(session.channel_id, "The story has ended."),
        Announce(session.channel_id, f"Final story:\n\n{build_story(session.story)}"),
    ]
    if session.thread_id:
        intents.append(ArchiveThread(session.thread_id))
    return _terminated(session, TERMINATED_ENDED, *intents)


def reset_session(
    session: StorySession, actor_id: str, is_admin: bool
) -> TransitionResult:
    """Remove the session unconditionally.

    Raises:
        NotAuthorizedError: Unless the actor is the leader or an admin.
    """
    if not is_admin and actor_id != session.leader_id:
        raise NotAuthorizedError(actor_id, session.leader_id, "reset")

    intents: list[Intent] = []
    if session.thread_id:
        intents.append(ArchiveThread(session.thread_id))
    intents.append(
        Announce(
            session.channel_id,
            "Session reset. You can start a new one with /startfictioncord.",
        )
    )
    return _terminated(session, TERMINATED_RESET, *intents)


def authorize_skip(session: StorySession, actor_id: str) -> None:
    """Check the actor may force the current phase's transition.

    Raises:
        NotAuthorizedError: Unless the actor is the leader.
    """
    if actor_id != session.leader_id:
        raise NotAuthorizedError(actor_id, session.leader_id, "skip")


# ----------------------------------------------------------------------
# Phase transitions
# ----------------------------------------------------------------------


def advance_phase(
    session: StorySession,
    now: datetime,
    durations: PhaseDurations = DEFAULT_PHASE_DURATIONS,
    winning_prompt_index: int | None = None,
) -> TransitionResult:
    """Run the current phase's transition as if its deadline had expired.

    Args:
        session: Session to advance.
        now: Current time; new deadlines are measured from it.
        durations: Deadline window lengths.
        winning_prompt_index: Tallied winner, used when closing the vote.
            None (or an out-of-range index) selects the first prompt.

    Returns:
        TransitionResult for the new phase, or a removal when the phase
        ended with nobody to carry on (no writers, no prompts).
    """
    if session.phase is SessionPhase.ENROLL:
        return _close_enrollment(session, now, durations)
    if session.phase is SessionPhase.COLLECT_PROMPTS:
        return _close_prompt_collection(session, now, durations)
    if session.phase is SessionPhase.VOTE_PROMPT:
        return _close_voting(session, now, durations, winning_prompt_index)
    return _skip_turn(session, now, durations)


def _close_enrollment(
    session: StorySession, now: datetime, durations: PhaseDurations
) -> TransitionResult:
    if not session.writers:
        return _terminated(
            session,
            TERMINATED_NO_WRITERS,
            Announce(
                session.channel_id,
                "Enrollment closed. No writers joined. Session ended.",
            ),
        )

    updated = session.with_phase_state(
        PromptCollectionPhase(ends_at=now + durations.prompt)
    )
    return TransitionResult(
        server_id=session.server_id,
        session=updated,
        intents=(
            Announce(
                session.channel_id,
                f"Enrollment closed. Writers in order:\n{build_writer_list(session.writers)}",
            ),
            Announce(
                session.channel_id,
                "Now we are collecting prompts. "
                f"You have {duration_hours(durations.prompt)} hours to submit with /submitprompt. "
                f"There is a limit of {MAX_PROMPTS} prompts total.",
            ),
        ),
        from_phase=SessionPhase.ENROLL,
        to_phase=SessionPhase.COLLECT_PROMPTS,
    )


def _close_prompt_collection(
    session: StorySession, now: datetime, durations: PhaseDurations
) -> TransitionResult:
    if not session.prompts:
        return _terminated(
            session,
            TERMINATED_NO_PROMPTS,
            Announce(
                session.channel_id,
                "Prompt collection ended with no prompts. Session ended.",
            ),
        )

    options = session.prompts[:MAX_PROMPTS]
    updated = session.with_phase_state(VotingPhase(ends_at=now + durations.vote))
    return TransitionResult(
        server_id=session.server_id,
        session=updated,
        intents=(
            OpenPoll(
                session.channel_id,
                build_poll_text(options, durations.vote),
                VOTE_MARKERS[: len(options)],
            ),
        ),
        from_phase=SessionPhase.COLLECT_PROMPTS,
        to_phase=SessionPhase.VOTE_PROMPT,
    )


def _close_voting(
    session: StorySession,
    now: datetime,
    durations: PhaseDurations,
    winning_prompt_index: int | None,
) -> TransitionResult:
    index = winning_prompt_index
    if index is None or not 0 <= index < len(session.prompts):
        index = FALLBACK_PROMPT_INDEX

    updated = session.with_phase_state(
        WritingPhase(
            ends_at=now + durations.first_turn,
            selected_prompt_index=index,
            current_writer_index=0,
        )
    )
    prompt = session.prompts[index]
    first_writer_id = session.writers[0]
    return TransitionResult(
        server_id=session.server_id,
        session=updated,
        intents=(
            OpenDiscussionThread(
                session.channel_id,
                build_thread_title(prompt.text),
                prompt.text,
            ),
            Announce(
                session.channel_id,
                f'Prompt selected: "{prompt.text}". A story thread has been created.\n'
                f"Writer 1 is {mention(first_writer_id)}. "
                f"You have {duration_hours(durations.first_turn)} hours to submit with /submitturn.\n"
                "_Tip: write your piece first, then use /submitturn to paste it in._",
            ),
        ),
        from_phase=SessionPhase.VOTE_PROMPT,
        to_phase=SessionPhase.WRITING,
    )


def _skip_turn(
    session: StorySession, now: datetime, durations: PhaseDurations
) -> TransitionResult:
    updated = _rotate_writer(session, now, durations.turn)
    return _same_phase(
        updated,
        Announce(
            session.channel_id,
            f"Time is up. Next writer is {mention(updated.current_writer_id or '')}. "
            f"You have {duration_hours(durations.turn)} hours to submit with /submitturn.",
        ),
    )


def _rotate_writer(
    session: StorySession, now: datetime, turn_duration: timedelta
) -> StorySession:
    state = session.phase_state
    assert isinstance(state, WritingPhase)
    return session.with_phase_state(
        WritingPhase(
            ends_at=now + turn_duration,
            selected_prompt_index=state.selected_prompt_index,
            current_writer_index=(state.current_writer_index + 1) % len(session.writers),
            thread_id=state.thread_id,
        )
    )


__all__ = [
    "DEFAULT_PHASE_DURATIONS",
    "PhaseDurations",
    "TERMINATED_ENDED",
    "TERMINATED_NO_PROMPTS",
    "TERMINATED_NO_WRITERS",
    "TERMINATED_RESET",
    "TransitionResult",
    "advance_phase",
    "authorize_skip",
    "end_session",
    "join_enrollment",
    "reset_session",
    "start_session",
    "submit_prompt",
    "submit_turn",
]
