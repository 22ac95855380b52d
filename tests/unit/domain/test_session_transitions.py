"""Unit tests for the pure session transitions."""

from datetime import datetime, timedelta, timezone

import pytest

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
    OpenDiscussionThread,
    OpenPoll,
    PostTurn,
)
from fictioncord.domain.models.story_session import (
    MAX_PROMPTS,
    VOTE_MARKERS,
    ReminderFlags,
    SessionPhase,
)
from fictioncord.domain.services.session_transitions import (
    TERMINATED_ENDED,
    TERMINATED_NO_PROMPTS,
    TERMINATED_NO_WRITERS,
    TERMINATED_RESET,
    PhaseDurations,
    advance_phase,
    authorize_skip,
    end_session,
    join_enrollment,
    reset_session,
    start_session,
    submit_prompt,
    submit_turn,
)
from tests.helpers import (
    enrolling_session,
    prompting_session,
    voting_session,
    writing_session,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
LATER = NOW + timedelta(hours=5)


class TestStartSession:
    def test_opens_enrollment_with_leader(self) -> None:
        result = start_session("S", "c1", "u1", NOW)

        assert result.session is not None
        assert result.session.phase is SessionPhase.ENROLL
        assert result.session.writers == ("u1",)
        assert result.session.ends_at == NOW + timedelta(hours=24)
        assert result.from_phase is result.to_phase is SessionPhase.ENROLL

    def test_announces_enrollment_window(self) -> None:
        result = start_session("S", "c1", "u1", NOW, PhaseDurations(enroll=timedelta(hours=6)))

        (intent,) = result.intents
        assert isinstance(intent, Announce)
        assert intent.channel_id == "c1"
        assert "You have 6 hours." in intent.text
        assert "/joinfictioncord" in intent.text


class TestJoinEnrollment:
    def test_appends_writer_in_join_order(self) -> None:
        session = enrolling_session(NOW)

        result = join_enrollment(session, "u2")

        assert result.session.writers == ("u1", "u2")
        assert result.intents == (Announce("c1", "<@u2> is now a writer for this session."),)

    def test_duplicate_join_rejected(self) -> None:
        session = enrolling_session(NOW, writers=("u1", "u2"))

        with pytest.raises(AlreadyEnrolledError):
            join_enrollment(session, "u2")

    def test_join_after_enrollment_rejected(self) -> None:
        session = prompting_session(NOW)

        with pytest.raises(WrongPhaseError, match="Enrollment is closed"):
            join_enrollment(session, "u9")


class TestSubmitPrompt:
    def test_appends_prompt(self) -> None:
        session = prompting_session(NOW)

        result = submit_prompt(session, "u2", "Dragons", max_length=300)

        assert [p.text for p in result.session.prompts] == ["Dragons"]
        assert result.session.prompts[0].author_id == "u2"
        assert result.intents == (Announce("c1", 'Prompt received from <@u2>: "Dragons"'),)

    def test_non_writer_rejected(self) -> None:
        with pytest.raises(NotEligibleError):
            submit_prompt(prompting_session(NOW), "u9", "Dragons", max_length=300)

    def test_wrong_phase_rejected(self) -> None:
        with pytest.raises(WrongPhaseError):
            submit_prompt(enrolling_session(NOW), "u1", "Dragons", max_length=300)

    def test_cap_rejects_further_prompts(self) -> None:
        session = prompting_session(NOW, prompts=[f"p{i}" for i in range(MAX_PROMPTS)])

        with pytest.raises(PromptCapReachedError):
            submit_prompt(session, "u1", "one more", max_length=300)

    def test_blank_text_rejected(self) -> None:
        with pytest.raises(SubmissionTooLongError) as exc_info:
            submit_prompt(prompting_session(NOW), "u1", "   ", max_length=300)

        assert exc_info.value.length == 0

    def test_overlong_text_rejected(self) -> None:
        with pytest.raises(SubmissionTooLongError) as exc_info:
            submit_prompt(prompting_session(NOW), "u1", "x" * 301, max_length=300)

        assert exc_info.value.length == 301
        assert exc_info.value.max_length == 300


class TestSubmitTurn:
    def test_records_turn_and_rotates_writer(self) -> None:
        session = writing_session(NOW).with_reminders(ReminderFlags(twelve_hour=True))

        result = submit_turn(session, "u1", "Once upon a time", LATER, max_length=1500)

        updated = result.session
        assert len(updated.story) == 1
        assert updated.story[0].author_id == "u1"
        assert updated.story[0].timestamp == LATER
        assert updated.current_writer_id == "u2"
        assert updated.ends_at == LATER + timedelta(hours=24)
        assert updated.reminders == ReminderFlags()
        assert updated.thread_id == "thread-1"

    def test_last_writer_wraps_to_first(self) -> None:
        session = writing_session(NOW, current_writer_index=2)

        result = submit_turn(session, "u3", "The end?", LATER, max_length=1500)

        assert result.session.current_writer_index == 0

    def test_posts_turn_to_thread_and_announces_next_writer(self) -> None:
        result = submit_turn(writing_session(NOW), "u1", "Once", LATER, max_length=1500)

        post, announce = result.intents
        assert post == PostTurn("c1", "thread-1", "Turn 1 by <@u1>:\nOnce")
        assert isinstance(announce, Announce)
        assert announce.text.startswith("Turn received. Next writer is <@u2>.")

    def test_other_writer_rejected(self) -> None:
        with pytest.raises(NotYourTurnError) as exc_info:
            submit_turn(writing_session(NOW), "u2", "Hi", LATER, max_length=1500)

        assert exc_info.value.current_writer_id == "u1"

    def test_wrong_phase_rejected(self) -> None:
        with pytest.raises(WrongPhaseError):
            submit_turn(voting_session(NOW), "u1", "Hi", LATER, max_length=1500)

    def test_overlong_turn_rejected(self) -> None:
        with pytest.raises(SubmissionTooLongError):
            submit_turn(writing_session(NOW), "u1", "x" * 11, LATER, max_length=10)


class TestEndSession:
    def test_leader_ends_and_story_is_published(self) -> None:
        result = end_session(writing_session(NOW), "u1")

        assert result.removed
        assert result.termination_reason == TERMINATED_ENDED
        assert result.intents == (
            Announce("c1", "The story has ended."),
            Announce("c1", "Final story:\n\nNo turns were submitted."),
            ArchiveThread("thread-1"),
        )

    def test_current_writer_may_end(self) -> None:
        result = end_session(writing_session(NOW, current_writer_index=1), "u2")

        assert result.removed

    def test_no_thread_means_no_archive(self) -> None:
        result = end_session(enrolling_session(NOW), "u1")

        assert not any(isinstance(i, ArchiveThread) for i in result.intents)

    def test_other_participants_rejected(self) -> None:
        with pytest.raises(NotAuthorizedError) as exc_info:
            end_session(writing_session(NOW), "u3")

        assert exc_info.value.leader_id == "u1"


class TestResetSession:
    def test_leader_resets(self) -> None:
        result = reset_session(writing_session(NOW), "u1", is_admin=False)

        assert result.removed
        assert result.termination_reason == TERMINATED_RESET
        assert result.intents[0] == ArchiveThread("thread-1")
        assert result.intents[-1].text.startswith("Session reset.")

    def test_admin_resets(self) -> None:
        assert reset_session(enrolling_session(NOW), "admin", is_admin=True).removed

    def test_writer_cannot_reset(self) -> None:
        with pytest.raises(NotAuthorizedError):
            reset_session(writing_session(NOW), "u2", is_admin=False)


class TestAuthorizeSkip:
    def test_leader_allowed(self) -> None:
        authorize_skip(enrolling_session(NOW), "u1")

    def test_writer_rejected(self) -> None:
        with pytest.raises(NotAuthorizedError, match="Only the leader can skip"):
            authorize_skip(enrolling_session(NOW, writers=("u1", "u2")), "u2")


class TestAdvancePhase:
    """advance_phase() from each phase."""

    def test_enrollment_closes_into_prompt_collection(self) -> None:
        session = enrolling_session(NOW, writers=("u1", "u2"))

        result = advance_phase(session, LATER)

        assert result.to_phase is SessionPhase.COLLECT_PROMPTS
        assert result.session.ends_at == LATER + timedelta(hours=24)
        assert result.session.reminders == ReminderFlags()
        first, second = result.intents
        assert first.text == "Enrollment closed. Writers in order:\n1. <@u1>\n2. <@u2>"
        assert "limit of 22 prompts" in second.text

    def test_empty_enrollment_terminates(self) -> None:
        session = enrolling_session(NOW, writers=())

        result = advance_phase(session, LATER)

        assert result.removed
        assert result.termination_reason == TERMINATED_NO_WRITERS
        assert result.intents == (
            Announce("c1", "Enrollment closed. No writers joined. Session ended."),
        )

    def test_prompt_collection_opens_poll(self) -> None:
        session = prompting_session(NOW, prompts=["A", "B", "C"])

        result = advance_phase(session, LATER)

        assert result.to_phase is SessionPhase.VOTE_PROMPT
        assert result.session.vote_message_id is None
        (poll,) = result.intents
        assert isinstance(poll, OpenPoll)
        assert poll.markers == VOTE_MARKERS[:3]

    def test_no_prompts_terminates(self) -> None:
        result = advance_phase(prompting_session(NOW), LATER)

        assert result.removed
        assert result.termination_reason == TERMINATED_NO_PROMPTS

    def test_vote_close_selects_winner_and_opens_thread(self) -> None:
        session = voting_session(NOW, prompts=("A", "B"))

        result = advance_phase(session, LATER, winning_prompt_index=1)

        assert result.to_phase is SessionPhase.WRITING
        assert result.session.selected_prompt_index == 1
        assert result.session.current_writer_index == 0
        assert result.session.thread_id is None
        thread, announce = result.intents
        assert thread == OpenDiscussionThread("c1", "Fictioncord: B", "B")
        assert announce.text.startswith('Prompt selected: "B".')

    @pytest.mark.parametrize("winner", [None, -1, 5])
    def test_missing_or_invalid_winner_selects_first_prompt(self, winner) -> None:
        session = voting_session(NOW, prompts=("A", "B"))

        result = advance_phase(session, LATER, winning_prompt_index=winner)

        assert result.session.selected_prompt_index == 0

    def test_writing_deadline_skips_to_next_writer(self) -> None:
        session = writing_session(NOW, current_writer_index=1)

        result = advance_phase(session, LATER)

        assert result.from_phase is result.to_phase is SessionPhase.WRITING
        assert not result.phase_changed
        assert result.session.current_writer_id == "u3"
        assert result.session.story == ()
        assert result.intents[0].text.startswith("Time is up. Next writer is <@u3>.")

    def test_custom_durations_apply_to_new_deadline(self) -> None:
        durations = PhaseDurations(first_turn=timedelta(hours=2))

        result = advance_phase(voting_session(NOW), LATER, durations, winning_prompt_index=0)

        assert result.session.ends_at == LATER + timedelta(hours=2)
