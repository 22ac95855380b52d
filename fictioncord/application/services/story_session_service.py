"""Story session service.

Orchestrates every story session command and the scheduler's per-session
work. Each operation is one read-modify-write of the whole session,
serialized per server by an asyncio.Lock, so chat commands and the
scheduler never interleave on the same server.

Flow of a mutating operation:
    1. Load the session (NoSessionError when absent).
    2. Run the pure transition, which validates before building anything.
    3. Save the new session (or delete it when the transition removed it).
    4. Dispatch the emitted intents to the chat collaborator.
    5. Store any created poll or thread reference in a second write.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

import structlog

from fictioncord.application.ports.chat_collaborator import ChatCollaboratorProtocol
from fictioncord.application.ports.session_store import SessionStoreProtocol
from fictioncord.application.ports.time_authority import TimeAuthorityProtocol
from fictioncord.application.services.intent_dispatcher import IntentDispatcher
from fictioncord.application.services.vote_tally_service import VoteTallyService
from fictioncord.config.session_config import DEFAULT_SESSION_CONFIG, SessionConfig
from fictioncord.domain.errors import AlreadyActiveError, NoSessionError
from fictioncord.domain.models.session_status import SessionStatus
from fictioncord.domain.models.story_session import (
    MAX_PROMPTS,
    SessionPhase,
    StorySession,
    truncate_to_millis,
)
from fictioncord.domain.services import session_transitions as transitions
from fictioncord.domain.services.reminders import evaluate_reminder, is_expired
from fictioncord.domain.services.story_formatting import (
    build_message_preview,
    build_status_message,
)
from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
)

TRIGGER_COMMAND = "command"
TRIGGER_SKIP = "skip"
TRIGGER_EXPIRY = "expiry"


@dataclass
class _ServerLock:
    """A server's lock and the number of operations holding or awaiting it."""

    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class StorySessionService:
    """Application service for story sessions.

    Attributes:
        _store: Session persistence.
        _collaborator: Chat side effects.
        _time: Clock for deadlines and turn timestamps.
        _config: Phase windows and text limits.
        _tally: Vote tally used when voting closes.
        _dispatcher: Executes transition intents.
        _metrics: Optional Prometheus collector.
    """

    def __init__(
        self,
        store: SessionStoreProtocol,
        collaborator: ChatCollaboratorProtocol,
        time_authority: TimeAuthorityProtocol,
        config: SessionConfig = DEFAULT_SESSION_CONFIG,
        vote_tally: Optional[VoteTallyService] = None,
        dispatcher: Optional[IntentDispatcher] = None,
        metrics: Optional[SessionMetricsCollector] = None,
    ) -> None:
        self._store = store
        self._collaborator = collaborator
        self._time = time_authority
        self._config = config
        self._metrics = metrics
        self._tally = vote_tally or VoteTallyService(collaborator, metrics)
        self._dispatcher = dispatcher or IntentDispatcher(collaborator, metrics)
        self._durations = config.phase_durations
        self._locks: dict[str, _ServerLock] = {}
        self._log = structlog.get_logger().bind(service="story_session")

    @property
    def config(self) -> SessionConfig:
        return self._config

    @asynccontextmanager
    async def _serialized(self, server_id: str) -> AsyncIterator[None]:
        """Hold the server's lock; the entry is dropped once nobody uses it."""
        entry = self._locks.get(server_id)
        if entry is None:
            entry = _ServerLock()
            self._locks[server_id] = entry
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(server_id) is entry:
                del self._locks[server_id]

    def _now(self) -> datetime:
        return truncate_to_millis(self._time.now())

    async def _require_session(self, server_id: str) -> StorySession:
        session = await self._store.get(server_id)
        if session is None:
            raise NoSessionError(server_id)
        return session

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start_session(
        self, server_id: str, channel_id: str, actor_id: str
    ) -> StorySession:
        """Open enrollment with the actor as leader.

        Raises:
            AlreadyActiveError: If a session is already running on the server.
        """
        async with self._serialized(server_id):
            existing = await self._store.get(server_id)
            if existing is not None:
                raise AlreadyActiveError(
                    server_id, existing.started_at, existing.can_end(actor_id)
                )

            result = transitions.start_session(
                server_id, channel_id, actor_id, self._now(), self._durations
            )
            session = await self._commit(result, TRIGGER_COMMAND)
            assert session is not None
            self._log.info(
                "session_started",
                server_id=server_id,
                channel_id=channel_id,
                leader_id=actor_id,
                ends_at=session.ends_at.isoformat(),
            )
            return session

    async def join_enrollment(self, server_id: str, actor_id: str) -> StorySession:
        """Enroll the actor as a writer.

        Raises:
            NoSessionError, WrongPhaseError, AlreadyEnrolledError
        """
        async with self._serialized(server_id):
            session = await self._require_session(server_id)
            result = transitions.join_enrollment(session, actor_id)
            updated = await self._commit(result, TRIGGER_COMMAND)
            self._log.info("writer_enrolled", server_id=server_id, actor_id=actor_id)
            assert updated is not None
            return updated

    async def submit_prompt(
        self, server_id: str, actor_id: str, text: str
    ) -> StorySession:
        """Add a prompt idea from an enrolled writer.

        Raises:
            NoSessionError, WrongPhaseError, NotEligibleError,
            PromptCapReachedError, SubmissionTooLongError
        """
        async with self._serialized(server_id):
            session = await self._require_session(server_id)
            result = transitions.submit_prompt(
                session, actor_id, text, self._config.max_prompt_length
            )
            updated = await self._commit(result, TRIGGER_COMMAND)
            assert updated is not None
            self._log.info(
                "prompt_submitted",
                server_id=server_id,
                actor_id=actor_id,
                prompt_count=len(updated.prompts),
            )
            return updated

    async def submit_turn(
        self, server_id: str, actor_id: str, text: str
    ) -> StorySession:
        """Append the current writer's turn and pass the turn on.

        Raises:
            NoSessionError, WrongPhaseError, NotYourTurnError,
            SubmissionTooLongError
        """
        async with self._serialized(server_id):
            session = await self._require_session(server_id)
            result = transitions.submit_turn(
                session,
                actor_id,
                text,
                self._now(),
                self._config.max_turn_length,
                self._durations,
            )
            updated = await self._commit(result, TRIGGER_COMMAND)
            assert updated is not None
            self._log.info(
                "turn_submitted",
                server_id=server_id,
                actor_id=actor_id,
                turn_number=len(updated.story),
                next_writer_id=updated.current_writer_id,
            )
            return updated

    async def end_session(self, server_id: str, actor_id: str) -> StorySession:
        """Publish the story and remove the session.

        Returns:
            The session as it was just before removal.

        Raises:
            NoSessionError, NotAuthorizedError
        """
        async with self._serialized(server_id):
            session = await self._require_session(server_id)
            result = transitions.end_session(session, actor_id)
            await self._commit(result, TRIGGER_COMMAND)
            self._log.info(
                "session_ended",
                server_id=server_id,
                actor_id=actor_id,
                turns=len(session.story),
            )
            return session

    async def skip_step(self, server_id: str, actor_id: str) -> Optional[StorySession]:
        """Force the current phase's transition now (leader only).

        Returns:
            The advanced session, or None if the transition removed it.

        Raises:
            NoSessionError, NotAuthorizedError
        """
        async with self._serialized(server_id):
            session = await self._require_session(server_id)
            transitions.authorize_skip(session, actor_id)
            return await self._advance(session, TRIGGER_SKIP)

    async def reset_session(
        self, server_id: str, actor_id: str, is_admin: bool = False
    ) -> None:
        """Remove the session unconditionally (leader or admin).

        Raises:
            NoSessionError, NotAuthorizedError
        """
        async with self._serialized(server_id):
            session = await self._require_session(server_id)
            result = transitions.reset_session(session, actor_id, is_admin)
            await self._commit(result, TRIGGER_COMMAND)
            self._log.info(
                "session_reset",
                server_id=server_id,
                actor_id=actor_id,
                is_admin=is_admin,
            )

    async def get_status(self, server_id: str) -> SessionStatus:
        """Summarize the running session.

        Raises:
            NoSessionError: If no session is running.
        """
        session = await self._require_session(server_id)
        now = self._now()
        remaining = session.time_left(now)
        return SessionStatus(
            server_id=server_id,
            phase=session.phase,
            ends_at=session.ends_at,
            time_remaining=max(remaining, timedelta(0)),
            leader_id=session.leader_id,
            writers=session.writers,
            prompt_count=len(session.prompts),
            max_prompts=MAX_PROMPTS,
            current_writer_id=session.current_writer_id,
            message=build_status_message(session, now),
        )

    async def guard_thread_message(
        self,
        server_id: str,
        thread_id: str,
        author_id: str,
        author_is_bot: bool,
        message_ref: str,
        content: Optional[str],
    ) -> bool:
        """Redact a participant message posted in the story thread.

        The message is deleted and its author gets a private copy. Bot
        messages and messages outside the active story thread are left
        alone.

        Returns:
            True if the message was in the story thread and redaction
            was requested.
        """
        if author_is_bot:
            return False
        session = await self._store.get(server_id)
        if session is None or not session.thread_id or session.thread_id != thread_id:
            return False

        preview = build_message_preview(content)
        try:
            await self._collaborator.delete_and_notify_author(
                message_ref, author_id, preview
            )
        except Exception as e:
            self._log.warning(
                "collaborator_call_failed",
                operation="delete_and_notify_author",
                server_id=server_id,
                error=str(e),
            )
            if self._metrics is not None:
                self._metrics.record_collaborator_failure("delete_and_notify_author")
        else:
            self._log.info(
                "thread_message_redacted",
                server_id=server_id,
                thread_id=thread_id,
                author_id=author_id,
            )
        return True

    # ------------------------------------------------------------------
    # Scheduler entry points
    # ------------------------------------------------------------------

    async def list_server_ids(self) -> list[str]:
        return await self._store.list_server_ids()

    async def process_session(self, server_id: str) -> None:
        """Run one scheduler pass for a server: reminders, then expiry.

        A reminder needs time left and expiry needs none, so at most one
        of the two acts per pass.
        """
        async with self._serialized(server_id):
            session = await self._store.get(server_id)
            if session is None:
                return
            now = self._now()

            reminder = evaluate_reminder(session, now)
            if reminder is not None:
                session = reminder.session
                await self._store.save(session)
                self._log.info(
                    "reminder_fired",
                    server_id=server_id,
                    phase=session.phase.value,
                    window=reminder.window.value,
                )
                if self._metrics is not None:
                    self._metrics.record_reminder(
                        session.phase.value, reminder.window.value
                    )
                await self._dispatcher.dispatch([reminder.intent])

            if is_expired(session, now):
                await self._advance(session, TRIGGER_EXPIRY)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _advance(
        self, session: StorySession, trigger: str
    ) -> Optional[StorySession]:
        winner: Optional[int] = None
        if session.phase is SessionPhase.VOTE_PROMPT:
            winner = await self._tally.select_prompt(
                session.channel_id, session.vote_message_id, session.prompts
            )
        result = transitions.advance_phase(
            session, self._now(), self._durations, winner
        )
        return await self._commit(result, trigger)

    async def _commit(
        self, result: transitions.TransitionResult, trigger: str
    ) -> Optional[StorySession]:
        """Persist a transition, run its intents and attach created references."""
        from_phase = result.from_phase.value

        if result.session is None:
            await self._store.delete(result.server_id)
            self._log.info(
                "session_terminated",
                server_id=result.server_id,
                from_phase=from_phase,
                reason=result.termination_reason,
                trigger=trigger,
            )
            if self._metrics is not None:
                self._metrics.record_transition(from_phase, "removed", trigger)
                self._metrics.record_termination(result.termination_reason or "unknown")
            await self._dispatcher.dispatch(result.intents)
            return None

        session = result.session
        await self._store.save(session)
        if result.phase_changed or trigger != TRIGGER_COMMAND:
            to_phase = session.phase.value
            self._log.info(
                "phase_advanced",
                server_id=session.server_id,
                from_phase=from_phase,
                to_phase=to_phase,
                trigger=trigger,
            )
            if self._metrics is not None:
                self._metrics.record_transition(from_phase, to_phase, trigger)

        outcome = await self._dispatcher.dispatch(result.intents)

        if outcome.poll_ref and session.phase is SessionPhase.VOTE_PROMPT:
            session = session.with_vote_message(outcome.poll_ref)
            await self._store.save(session)
        if outcome.thread_ref and session.phase is SessionPhase.WRITING:
            session = session.with_thread(outcome.thread_ref)
            await self._store.save(session)
        return session
