"""Chat collaborator stub.

In-memory ChatCollaboratorProtocol for tests and development. Every call
is recorded; calls can be made to fail per operation; poll tallies are
configurable per poll reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from structlog import get_logger

from fictioncord.domain.services.story_formatting import build_guard_notice

logger = get_logger()


class CollaboratorUnavailableError(Exception):
    """Raised by the stub for operations configured to fail."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"chat collaborator operation {operation} failed")


@dataclass
class CollaboratorCall:
    """Record of one collaborator call (for stub tracking)."""

    operation: str
    args: tuple[Any, ...]


@dataclass
class ChatCollaboratorStub:
    """Stub chat collaborator that records calls instead of talking to a platform.

    Attributes:
        calls: Every call in order, including failed ones.
        fail_operations: Operation names that raise CollaboratorUnavailableError.
        poll_counts: Reaction counts returned by tally_poll, keyed by poll ref.
            Polls without an entry tally zero for every marker.
        threads: Posts per thread ref (the selected prompt first).
        archived_threads: Thread refs that were locked and archived.
        direct_messages: (author_ref, text) for every redacted thread message.
    """

    calls: list[CollaboratorCall] = field(default_factory=list)
    fail_operations: set[str] = field(default_factory=set)
    poll_counts: dict[str, list[int]] = field(default_factory=dict)
    threads: dict[str, list[str]] = field(default_factory=dict)
    archived_threads: list[str] = field(default_factory=list)
    direct_messages: list[tuple[str, str]] = field(default_factory=list)
    _next_ref: int = 0

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append(CollaboratorCall(operation=operation, args=args))
        if operation in self.fail_operations:
            logger.warning("chat_collaborator_stub.failed", operation=operation)
            raise CollaboratorUnavailableError(operation)

    def _new_ref(self, kind: str) -> str:
        self._next_ref += 1
        return f"{kind}-{self._next_ref}"

    def clear(self) -> None:
        """Clear all recorded state for test cleanup."""
        self.calls.clear()
        self.fail_operations.clear()
        self.poll_counts.clear()
        self.threads.clear()
        self.archived_threads.clear()
        self.direct_messages.clear()

    def calls_for(self, operation: str) -> list[CollaboratorCall]:
        return [call for call in self.calls if call.operation == operation]

    @property
    def notifications(self) -> list[str]:
        """Texts of every notify() call, in order."""
        return [call.args[1] for call in self.calls_for("notify")]

    # =========================================================================
    # ChatCollaboratorProtocol Implementation
    # =========================================================================

    async def notify(self, channel_ref: str, text: str) -> None:
        self._record("notify", channel_ref, text)

    async def create_discussion_thread(
        self, channel_ref: str, title: str, prompt_text: str
    ) -> str:
        self._record("create_discussion_thread", channel_ref, title, prompt_text)
        thread_ref = self._new_ref("thread")
        self.threads[thread_ref] = [f"Selected prompt:\n{prompt_text}"]
        return thread_ref

    async def lock_and_archive(self, thread_ref: str) -> None:
        self._record("lock_and_archive", thread_ref)
        self.archived_threads.append(thread_ref)

    async def post_to_thread(self, thread_ref: str, text: str) -> None:
        self._record("post_to_thread", thread_ref, text)
        self.threads.setdefault(thread_ref, []).append(text)

    async def create_poll(
        self, channel_ref: str, text: str, markers: Sequence[str]
    ) -> str:
        self._record("create_poll", channel_ref, text, tuple(markers))
        return self._new_ref("poll")

    async def tally_poll(
        self, channel_ref: str, poll_ref: str, markers: Sequence[str]
    ) -> list[int]:
        self._record("tally_poll", channel_ref, poll_ref, tuple(markers))
        return list(self.poll_counts.get(poll_ref, [0] * len(markers)))

    async def delete_and_notify_author(
        self, message_ref: str, author_ref: str, content_preview: str
    ) -> None:
        self._record("delete_and_notify_author", message_ref, author_ref, content_preview)
        self.direct_messages.append((author_ref, build_guard_notice(content_preview)))
