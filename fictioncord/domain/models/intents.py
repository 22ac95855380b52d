"""Notification intents emitted by session transitions.

Transitions never talk to the chat platform. They return intents, and
the application layer hands them to the chat collaborator after the new
session state has been committed. A failed intent never rolls the
session back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Announce:
    """Post a text announcement to a channel."""

    channel_id: str
    text: str


@dataclass(frozen=True)
class PostTurn:
    """Post a submitted turn to the story thread (or the channel without one)."""

    channel_id: str
    thread_id: str | None
    text: str


@dataclass(frozen=True)
class OpenPoll:
    """Post the prompt poll and add one reaction marker per option.

    The resulting poll reference is stored back on the session.
    """

    channel_id: str
    text: str
    markers: tuple[str, ...]


@dataclass(frozen=True)
class OpenDiscussionThread:
    """Create the write-locked story thread for the selected prompt.

    The resulting thread reference is stored back on the session.
    """

    channel_id: str
    title: str
    prompt_text: str


@dataclass(frozen=True)
class ArchiveThread:
    """Lock and archive the story thread (best-effort)."""

    thread_id: str


Intent = Union[Announce, PostTurn, OpenPoll, OpenDiscussionThread, ArchiveThread]
