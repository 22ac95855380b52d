"""Unit tests for StorySessionService.

Uses the in-memory store and collaborator stubs with a FakeTimeAuthority,
so every deadline is deterministic.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from fictioncord.application.services.story_session_service import (
    StorySessionService,
)
from fictioncord.domain.errors import (
    AlreadyActiveError,
    AlreadyEnrolledError,
    NoSessionError,
    NotAuthorizedError,
    NotYourTurnError,
    SubmissionTooLongError,
)
from fictioncord.domain.models.story_session import ReminderFlags, SessionPhase
from fictioncord.infrastructure.adapters.persistence import JsonFileSessionStore
from tests.helpers import (
    counter_value,
    enrolling_session,
    prompting_session,
    voting_session,
    writing_session,
)


@pytest.fixture
def service(
    session_store, collaborator, fake_time_authority, session_config, metrics
) -> StorySessionService:
    return StorySessionService(
        store=session_store,
        collaborator=collaborator,
        time_authority=fake_time_authority,
        config=session_config,
        metrics=metrics,
    )


@pytest.fixture
def now(fake_time_authority):
    return fake_time_authority.now()


class TestStartSession:
    """Tests for start_session()."""

    @pytest.mark.asyncio
    async def test_start_stores_enrolling_session(
        self, service, session_store, collaborator, now
    ) -> None:
        """Test a new session is stored with the leader enrolled."""
        session = await service.start_session("S", "c1", "u1")

        assert session.phase is SessionPhase.ENROLL
        assert session.ends_at == now + timedelta(hours=24)
        assert await session_store.get("S") == session
        assert len(collaborator.notifications) == 1
        assert "/joinfictioncord" in collaborator.notifications[0]

    @pytest.mark.asyncio
    async def test_second_start_rejected(self, service, now) -> None:
        """Test a running session blocks a new one."""
        await service.start_session("S", "c1", "u1")

        with pytest.raises(AlreadyActiveError) as exc_info:
            await service.start_session("S", "c1", "u2")

        assert exc_info.value.started_at == now
        assert exc_info.value.can_end is False

    @pytest.mark.asyncio
    async def test_leader_is_told_they_can_end(self, service) -> None:
        """Test the AlreadyActiveError hint reflects the actor's role."""
        await service.start_session("S", "c1", "u1")

        with pytest.raises(AlreadyActiveError) as exc_info:
            await service.start_session("S", "c1", "u1")

        assert exc_info.value.can_end is True

    @pytest.mark.asyncio
    async def test_servers_are_independent(self, service) -> None:
        """Test each server has its own session."""
        await service.start_session("S1", "c1", "u1")
        await service.start_session("S2", "c2", "u1")

        assert sorted(await service.list_server_ids()) == ["S1", "S2"]


class TestParticipantCommands:
    """Tests for join, prompt and turn submission."""

    @pytest.mark.asyncio
    async def test_join_appends_writer(self, service) -> None:
        """Test join_enrollment stores the new writer."""
        await service.start_session("S", "c1", "u1")

        session = await service.join_enrollment("S", "u2")

        assert session.writers == ("u1", "u2")

    @pytest.mark.asyncio
    async def test_join_twice_rejected(self, service) -> None:
        """Test a writer cannot enroll twice."""
        await service.start_session("S", "c1", "u1")

        with pytest.raises(AlreadyEnrolledError):
            await service.join_enrollment("S", "u1")

    @pytest.mark.asyncio
    async def test_command_without_session(self, service) -> None:
        """Test commands on an idle server raise NoSessionError."""
        with pytest.raises(NoSessionError):
            await service.join_enrollment("S", "u1")
        with pytest.raises(NoSessionError):
            await service.get_status("S")

    @pytest.mark.asyncio
    async def test_prompt_limit_from_config(self, service, session_store, now) -> None:
        """Test the configured prompt length limit applies."""
        await session_store.save(prompting_session(now))

        with pytest.raises(SubmissionTooLongError) as exc_info:
            await service.submit_prompt("S", "u1", "x" * 301)

        assert exc_info.value.max_length == 300

    @pytest.mark.asyncio
    async def test_prompt_is_stored(self, service, session_store, now) -> None:
        """Test submit_prompt persists the prompt."""
        await session_store.save(prompting_session(now))

        await service.submit_prompt("S", "u2", "A robot learns to cook")

        stored = await session_store.get("S")
        assert [p.text for p in stored.prompts] == ["A robot learns to cook"]

    @pytest.mark.asyncio
    async def test_turn_posts_to_thread(
        self, service, session_store, collaborator, now
    ) -> None:
        """Test a turn is recorded and posted into the story thread."""
        await session_store.save(writing_session(now))

        session = await service.submit_turn("S", "u1", "Once upon a time")

        assert session.current_writer_id == "u2"
        assert collaborator.threads["thread-1"] == ["Turn 1 by <@u1>:\nOnce upon a time"]

    @pytest.mark.asyncio
    async def test_rejected_command_leaves_session_untouched(
        self, service, session_store, collaborator, now
    ) -> None:
        """Test a validation error neither saves nor notifies."""
        original = writing_session(now)
        await session_store.save(original)
        saves = session_store.save_count

        with pytest.raises(NotYourTurnError):
            await service.submit_turn("S", "u2", "Me next")

        assert await session_store.get("S") == original
        assert session_store.save_count == saves
        assert collaborator.calls == []


class TestEndAndReset:
    """Tests for end_session() and reset_session()."""

    @pytest.mark.asyncio
    async def test_end_publishes_story_and_removes(
        self, service, session_store, collaborator, metrics, now
    ) -> None:
        """Test the story is published and the thread archived."""
        await session_store.save(writing_session(now))
        await service.submit_turn("S", "u1", "Once upon a time")

        ended = await service.end_session("S", "u1")

        assert len(ended.story) == 1
        assert await session_store.get("S") is None
        assert collaborator.notifications[-2] == "The story has ended."
        assert collaborator.notifications[-1] == (
            "Final story:\n\n1. <@u1>\nOnce upon a time"
        )
        assert collaborator.archived_threads == ["thread-1"]
        assert (
            counter_value(metrics, "fictioncord_sessions_terminated_total", reason="ended")
            == 1
        )

    @pytest.mark.asyncio
    async def test_end_by_other_writer_rejected(self, service, session_store, now) -> None:
        """Test only the leader or current writer may end."""
        await session_store.save(writing_session(now))

        with pytest.raises(NotAuthorizedError):
            await service.end_session("S", "u3")

        assert await session_store.get("S") is not None

    @pytest.mark.asyncio
    async def test_admin_reset(self, service, session_store, collaborator, now) -> None:
        """Test an admin can clear someone else's session."""
        await session_store.save(enrolling_session(now))

        await service.reset_session("S", "mod", is_admin=True)

        assert await session_store.get("S") is None
        assert collaborator.notifications == [
            "Session reset. You can start a new one with /startfictioncord."
        ]

    @pytest.mark.asyncio
    async def test_reset_by_writer_rejected(self, service, session_store, now) -> None:
        """Test a non-leader without admin rights cannot reset."""
        await session_store.save(enrolling_session(now, writers=("u1", "u2")))

        with pytest.raises(NotAuthorizedError):
            await service.reset_session("S", "u2")


class TestSkipStep:
    """Tests for skip_step(), the leader's forced transition."""

    @pytest.mark.asyncio
    async def test_non_leader_rejected(self, service, session_store, now) -> None:
        """Test only the leader may skip."""
        await session_store.save(enrolling_session(now, writers=("u1", "u2")))

        with pytest.raises(NotAuthorizedError):
            await service.skip_step("S", "u2")

    @pytest.mark.asyncio
    async def test_skip_closes_enrollment(self, service, metrics) -> None:
        """Test skipping enrollment opens prompt collection."""
        await service.start_session("S", "c1", "u1")

        session = await service.skip_step("S", "u1")

        assert session.phase is SessionPhase.COLLECT_PROMPTS
        assert (
            counter_value(
                metrics,
                "fictioncord_phase_transitions_total",
                from_phase="enroll",
                to_phase="collect_prompts",
                trigger="skip",
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_skip_without_prompts_removes_session(
        self, service, session_store, now
    ) -> None:
        """Test an empty prompt collection ends the session."""
        await session_store.save(prompting_session(now))

        assert await service.skip_step("S", "u1") is None
        assert await session_store.get("S") is None

    @pytest.mark.asyncio
    async def test_poll_reference_is_stored(self, service, session_store, now) -> None:
        """Test the created poll is attached to the voting session."""
        await session_store.save(prompting_session(now, prompts=["A", "B"]))

        await service.skip_step("S", "u1")

        stored = await session_store.get("S")
        assert stored.phase is SessionPhase.VOTE_PROMPT
        assert stored.vote_message_id == "poll-1"

    @pytest.mark.asyncio
    async def test_vote_close_uses_tally_and_stores_thread(
        self, service, session_store, collaborator, now
    ) -> None:
        """Test the tallied winner is selected and the thread attached."""
        await session_store.save(voting_session(now, prompts=("A", "B")))
        collaborator.poll_counts["poll-1"] = [0, 1]

        await service.skip_step("S", "u1")

        stored = await session_store.get("S")
        assert stored.selected_prompt_index == 1
        assert stored.current_writer_index == 0
        assert stored.thread_id == "thread-1"

    @pytest.mark.asyncio
    async def test_skip_turn_rotates_writer(self, service, session_store, metrics, now) -> None:
        """Test skipping a turn passes it on without recording one."""
        await session_store.save(writing_session(now))

        session = await service.skip_step("S", "u1")

        assert session.current_writer_id == "u2"
        assert session.story == ()
        assert (
            counter_value(
                metrics,
                "fictioncord_phase_transitions_total",
                from_phase="writing",
                to_phase="writing",
                trigger="skip",
            )
            == 1
        )


class TestGetStatus:
    """Tests for get_status()."""

    @pytest.mark.asyncio
    async def test_status_reports_time_remaining(
        self, service, session_store, fake_time_authority, now
    ) -> None:
        """Test the remaining time follows the clock."""
        await session_store.save(prompting_session(now, prompts=["A"]))
        fake_time_authority.advance(delta=timedelta(hours=4))

        status = await service.get_status("S")

        assert status.phase is SessionPhase.COLLECT_PROMPTS
        assert status.time_remaining == timedelta(hours=20)
        assert status.prompt_count == 1
        assert status.max_prompts == 22
        assert status.message.startswith("Phase: collect_prompts")

    @pytest.mark.asyncio
    async def test_overdue_status_is_not_negative(
        self, service, session_store, fake_time_authority, now
    ) -> None:
        """Test a passed deadline reports zero time left."""
        await session_store.save(enrolling_session(now))
        fake_time_authority.advance(delta=timedelta(hours=30))

        status = await service.get_status("S")

        assert status.time_remaining == timedelta(0)


class TestGuardThreadMessage:
    """Tests for guard_thread_message()."""

    @pytest.mark.asyncio
    async def test_story_thread_message_is_redacted(
        self, service, session_store, collaborator, now
    ) -> None:
        """Test a participant message in the story thread is deleted."""
        await session_store.save(writing_session(now))

        redacted = await service.guard_thread_message(
            "S", "thread-1", "u9", False, "m1", "  my idea  "
        )

        assert redacted
        (call,) = collaborator.calls_for("delete_and_notify_author")
        assert call.args == ("m1", "u9", "my idea")
        assert collaborator.direct_messages[0][0] == "u9"

    @pytest.mark.asyncio
    async def test_bot_messages_pass(self, service, session_store, collaborator, now) -> None:
        """Test bot messages are never redacted."""
        await session_store.save(writing_session(now))

        assert not await service.guard_thread_message(
            "S", "thread-1", "bot", True, "m1", "Turn 1"
        )
        assert collaborator.calls == []

    @pytest.mark.asyncio
    async def test_other_threads_pass(self, service, session_store, now) -> None:
        """Test messages outside the story thread are ignored."""
        await session_store.save(writing_session(now))

        assert not await service.guard_thread_message(
            "S", "thread-2", "u9", False, "m1", "hi"
        )
        assert not await service.guard_thread_message(
            "S2", "thread-1", "u9", False, "m1", "hi"
        )

    @pytest.mark.asyncio
    async def test_collaborator_failure_is_counted(
        self, service, session_store, collaborator, metrics, now
    ) -> None:
        """Test a failed deletion still reports the redaction attempt."""
        await session_store.save(writing_session(now))
        collaborator.fail_operations.add("delete_and_notify_author")

        assert await service.guard_thread_message(
            "S", "thread-1", "u9", False, "m1", None
        )
        assert (
            counter_value(
                metrics,
                "fictioncord_collaborator_failures_total",
                operation="delete_and_notify_author",
            )
            == 1
        )


class TestProcessSession:
    """Tests for the scheduler's per-session pass."""

    @pytest.mark.asyncio
    async def test_reminder_fires_once(
        self, service, session_store, collaborator, fake_time_authority, metrics, now
    ) -> None:
        """Test the 12-hour reminder latches after firing."""
        await session_store.save(enrolling_session(now))
        fake_time_authority.advance(delta=timedelta(hours=13))

        await service.process_session("S")
        await service.process_session("S")

        stored = await session_store.get("S")
        assert stored.reminders == ReminderFlags(twelve_hour=True)
        assert collaborator.notifications == [
            "Reminder: enrollment is still open. "
            "We are waiting for writers to join with /joinfictioncord."
        ]
        assert (
            counter_value(
                metrics, "fictioncord_reminders_total", phase="enroll", window="12h"
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_expired_deadline_advances(
        self, service, session_store, fake_time_authority, metrics, now
    ) -> None:
        """Test an expired enrollment moves to prompt collection."""
        await session_store.save(enrolling_session(now, writers=("u1", "u2")))
        fake_time_authority.advance(delta=timedelta(hours=24))

        await service.process_session("S")

        stored = await session_store.get("S")
        assert stored.phase is SessionPhase.COLLECT_PROMPTS
        assert stored.ends_at == fake_time_authority.now() + timedelta(hours=24)
        assert (
            counter_value(
                metrics,
                "fictioncord_phase_transitions_total",
                from_phase="enroll",
                to_phase="collect_prompts",
                trigger="expiry",
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_nothing_due(self, service, session_store, collaborator, now) -> None:
        """Test a fresh session is left alone."""
        await session_store.save(enrolling_session(now))
        saves = session_store.save_count

        await service.process_session("S")

        assert session_store.save_count == saves
        assert collaborator.calls == []

    @pytest.mark.asyncio
    async def test_unknown_server_is_ignored(self, service) -> None:
        """Test a session removed between list and process is skipped."""
        await service.process_session("gone")

    @pytest.mark.asyncio
    async def test_unreadable_poll_selects_first_prompt(
        self, service, session_store, collaborator, fake_time_authority, now
    ) -> None:
        """Test a failed tally still moves the session into writing."""
        await session_store.save(voting_session(now, prompts=("A", "B")))
        collaborator.fail_operations.add("tally_poll")
        fake_time_authority.advance(delta=timedelta(hours=25))

        await service.process_session("S")

        stored = await session_store.get("S")
        assert stored.phase is SessionPhase.WRITING
        assert stored.selected_prompt_index == 0


class TestPerServerSerialization:
    """Concurrent commands on one server never lose an update."""

    @pytest.fixture
    def file_service(
        self, tmp_path, collaborator, fake_time_authority, session_config, metrics
    ) -> StorySessionService:
        return StorySessionService(
            store=JsonFileSessionStore(tmp_path / "state.json"),
            collaborator=collaborator,
            time_authority=fake_time_authority,
            config=session_config,
            metrics=metrics,
        )

    @pytest.mark.asyncio
    async def test_concurrent_joins_are_all_kept(self, file_service) -> None:
        """Test interleaved joins on two servers keep every writer."""
        await file_service.start_session("S", "c1", "u0")
        await file_service.start_session("T", "c2", "v0")

        await asyncio.gather(
            *(file_service.join_enrollment("S", f"u{i}") for i in range(1, 20))
        )
        await asyncio.gather(
            *(
                file_service.join_enrollment(server_id, f"{prefix}{i}")
                for i in range(20, 25)
                for server_id, prefix in (("S", "u"), ("T", "v"))
            )
        )

        s_status = await file_service.get_status("S")
        t_status = await file_service.get_status("T")
        assert len(s_status.writers) == 25
        assert len(set(s_status.writers)) == 25
        assert len(t_status.writers) == 6
        assert s_status.writers[0] == "u0"

    @pytest.mark.asyncio
    async def test_concurrent_prompts_are_not_duplicated(
        self, file_service, tmp_path, now
    ) -> None:
        """Test simultaneous prompts are each stored exactly once."""
        writers = tuple(f"u{i}" for i in range(10))
        store = JsonFileSessionStore(tmp_path / "state.json")
        await store.save(prompting_session(now, writers=writers))

        await asyncio.gather(
            *(file_service.submit_prompt("S", w, f"Prompt from {w}") for w in writers)
        )

        stored = await store.get("S")
        assert sorted(p.text for p in stored.prompts) == sorted(
            f"Prompt from {w}" for w in writers
        )

    @pytest.mark.asyncio
    async def test_server_locks_are_released(self, file_service) -> None:
        """Test no per-server lock outlives the operations using it."""
        await file_service.start_session("S", "c1", "u0")
        await asyncio.gather(
            *(file_service.join_enrollment("S", f"u{i}") for i in range(1, 5))
        )
        await file_service.end_session("S", "u0")

        assert file_service._locks == {}

    @pytest.mark.asyncio
    async def test_failed_command_releases_lock(self, file_service) -> None:
        """Test a rejected command does not leave its lock behind."""
        with pytest.raises(NoSessionError):
            await file_service.join_enrollment("S", "u1")

        assert file_service._locks == {}


class TestMillisecondTimes:
    """Session times are kept at the stored millisecond resolution."""

    @pytest.mark.asyncio
    async def test_saved_session_reloads_unchanged(
        self, tmp_path, collaborator, fake_time_authority, session_config
    ) -> None:
        """Test a clock with microseconds still round-trips through the file."""
        fake_time_authority.set_time(
            datetime(2026, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
        )
        store = JsonFileSessionStore(tmp_path / "state.json")
        service = StorySessionService(
            store=store,
            collaborator=collaborator,
            time_authority=fake_time_authority,
            config=session_config,
        )

        session = await service.start_session("S", "c1", "u1")

        assert session.started_at.microsecond == 123000
        assert await JsonFileSessionStore(tmp_path / "state.json").get("S") == session
