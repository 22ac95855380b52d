"""Chat collaborator port.

The collaborator is everything that touches the chat platform: posting
announcements, the prompt poll, the story thread and private messages.
The session core only decides what should happen and calls this port to
make it happen. Every call may fail; callers treat failures as
non-fatal.

References (channel, thread, poll, message and participant ids) are
opaque strings owned by the platform.
"""

from __future__ import annotations

from typing import Protocol, Sequence


class ChatCollaboratorProtocol(Protocol):
    """Protocol for chat platform side effects."""

    async def notify(self, channel_ref: str, text: str) -> None:
        """Post an announcement to a channel."""
        ...

    async def create_discussion_thread(
        self, channel_ref: str, title: str, prompt_text: str
    ) -> str:
        """Create the story thread for the selected prompt.

        The thread is read-only for participants (reactions allowed) and
        opens with the selected prompt.

        Args:
            channel_ref: Channel the thread hangs off.
            title: Thread title.
            prompt_text: Selected prompt, posted as the first message.

        Returns:
            Reference to the created thread.
        """
        ...

    async def lock_and_archive(self, thread_ref: str) -> None:
        """Lock and archive the story thread."""
        ...

    async def post_to_thread(self, thread_ref: str, text: str) -> None:
        """Post a message into the story thread."""
        ...

    async def create_poll(
        self, channel_ref: str, text: str, markers: Sequence[str]
    ) -> str:
        """Post the prompt poll and add one reaction per marker.

        Returns:
            Reference to the poll message.
        """
        ...

    async def tally_poll(
        self, channel_ref: str, poll_ref: str, markers: Sequence[str]
    ) -> list[int]:
        """Count human reactions per marker on the poll.

        Automated reactors (the bot's own seed reactions included) are
        excluded.

        Returns:
            One count per marker, in marker order.
        """
        ...

    async def delete_and_notify_author(
        self, message_ref: str, author_ref: str, content_preview: str
    ) -> None:
        """Delete a message and privately send its author a copy."""
        ...
