"""Text rendering for announcements, status replies and the final story.

Participant ids are rendered as chat mentions (<@id>); the chat
collaborator is responsible for turning them into links.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Sequence

from fictioncord.domain.models.story_session import (
    MAX_PROMPTS,
    VOTE_MARKERS,
    Prompt,
    SessionPhase,
    StorySession,
    StoryTurn,
)

THREAD_TITLE_PREFIX = "Fictioncord: "
THREAD_TITLE_PROMPT_CHARS = 80


def mention(participant_id: str) -> str:
    return f"<@{participant_id}>"


def format_hours(hours: int) -> str:
    return f"{hours} hour{'' if hours == 1 else 's'}"


def format_duration(duration: timedelta) -> str:
    """Render a duration rounded to the nearest whole hour (half rounds up)."""
    hours = math.floor(duration.total_seconds() / 3600 + 0.5)
    return format_hours(max(hours, 0))


def duration_hours(duration: timedelta) -> int:
    return int(duration.total_seconds() // 3600)


def build_writer_list(writers: Sequence[str]) -> str:
    return "\n".join(f"{i + 1}. {mention(w)}" for i, w in enumerate(writers))


def build_prompt_list(prompts: Sequence[Prompt]) -> str:
    if not prompts:
        return "No prompts yet."
    return "\n".join(
        f'{i + 1}. "{p.text}" (by {mention(p.author_id)})' for i, p in enumerate(prompts)
    )


def build_story(story: Sequence[StoryTurn]) -> str:
    if not story:
        return "No turns were submitted."
    return "\n\n".join(
        f"{i + 1}. {mention(turn.author_id)}\n{turn.text}" for i, turn in enumerate(story)
    )


def build_poll_text(prompts: Sequence[Prompt], vote_duration: timedelta) -> str:
    """Render the poll body, one marker per prompt in submission order."""
    lines = [
        f"{VOTE_MARKERS[i]} {p.text} (by {mention(p.author_id)})"
        for i, p in enumerate(prompts[:MAX_PROMPTS])
    ]
    return (
        "Vote for your favorite prompt by reacting. "
        f"You have {duration_hours(vote_duration)} hours.\n\n" + "\n".join(lines)
    )


def build_thread_title(prompt_text: str) -> str:
    return f"{THREAD_TITLE_PREFIX}{prompt_text[:THREAD_TITLE_PROMPT_CHARS]}"


def build_status_message(session: StorySession, now: datetime) -> str:
    """Render the phase-specific status reply."""
    remaining = format_duration(session.time_left(now))
    status = f"Phase: {session.phase.value}"

    if session.phase is SessionPhase.ENROLL:
        status += "\nWaiting for writers to join with /joinfictioncord."
        status += f"\nEnrollment ends in {remaining}"
        writer_list = build_writer_list(session.writers) or "No writers yet."
        status += f"\nWriters so far:\n{writer_list}"
    elif session.phase is SessionPhase.COLLECT_PROMPTS:
        status += "\nCollecting prompt ideas with /submitprompt."
        status += f"\nPrompts so far: {len(session.prompts)}/{MAX_PROMPTS}"
        status += f"\nPrompt collection ends in {remaining}"
        status += f"\nPrompts submitted:\n{build_prompt_list(session.prompts)}"
    elif session.phase is SessionPhase.VOTE_PROMPT:
        status += "\nVoting on prompts (react to the poll message)."
        status += f"\nVoting ends in {remaining}"
    else:
        writer_id = session.current_writer_id or ""
        status += (
            f"\nWaiting for {mention(writer_id)} to submit their turn with /submitturn."
        )
        status += f"\nTurn ends in {remaining}"
    return status


RULES_LINES: tuple[str, ...] = (
    "**Fictioncord Rules & Flow**",
    "1) **Start (leader)**: /startfictioncord starts the session and makes the user who ran it the leader.",
    "2) **Enrollment (24h)**: Writers join with /joinfictioncord.",
    "3) **Prompts (24h)**: Enrolled writers submit prompt ideas with /submitprompt. Multiple prompts allowed until the cap.",
    "4) **Voting (24h)**: React on the poll message to vote for the best prompt.",
    "5) **Writing (24h per turn)**: The current writer submits their turn with /submitturn.",
    "",
    "**Leader Role**",
    "- The user who starts the session is the leader.",
    "- Leader can use /skipstep to advance the current step.",
    "- Leader can use /theend to end the session at any time.",
    "",
    "**Ending a Session**",
    "- /theend by the leader or current writer ends the story and posts it in the main channel.",
    "- /resetfictioncord (leader or admin) clears the session if it gets stuck.",
    "",
    "**Threads & Chat**",
    "- The story thread is read-only for users (react only).",
    "- Everyone can comment freely in the main channel.",
    "",
    "**Status**",
    "- Use /statusfictioncord anytime to see the current step and time remaining.",
    "",
    "**Commands**",
    "- /startfictioncord: Start a session and become the leader.",
    "- /joinfictioncord: Join as a writer during enrollment.",
    "- /submitprompt: Submit a prompt idea (during prompt collection).",
    "- /submitturn: Submit your story turn (current writer only).",
    "- /skipstep: Leader-only, skip the current step.",
    "- /theend: End the session (leader or current writer).",
    "- /resetfictioncord: Leader or admin, clear the session.",
    "- /statusfictioncord: Show the current step and time remaining.",
    "- /rulesfictioncord: Show these rules.",
)


def rules_text() -> str:
    return "\n".join(RULES_LINES)


GUARD_PREVIEW_CHARS = 800


def build_message_preview(content: str | None) -> str:
    """Trim a redacted thread message for the copy sent back to its author."""
    text = (content or "").strip() or "(no text)"
    if len(text) > GUARD_PREVIEW_CHARS:
        return f"{text[:GUARD_PREVIEW_CHARS]}…"
    return text


def build_guard_notice(preview: str) -> str:
    return (
        "You can’t write in the story thread. Only writers on their turn can add "
        "to the story using /submitturn.\n\n"
        "Your message (copy it):\n"
        f"```\n{preview}\n```"
    )
