"""Session store port.

The store is a durable map from server id to the full session record.
Every mutation replaces the whole record; there are no partial updates.
"""

from __future__ import annotations

from typing import Optional, Protocol

from fictioncord.domain.models.story_session import StorySession


class SessionStoreProtocol(Protocol):
    """Protocol for story session persistence.

    Implementations:
        SessionStoreStub: in-memory, for tests and development.
        JsonFileSessionStore: single JSON document on disk.
        SqlSessionStore: one row per server via SQLAlchemy.
    """

    async def get(self, server_id: str) -> Optional[StorySession]:
        """Get the session for a server.

        Args:
            server_id: Chat server id.

        Returns:
            The stored session, or None if no session is running.
        """
        ...

    async def save(self, session: StorySession) -> None:
        """Store a session, replacing any previous record for its server.

        Args:
            session: Session to persist (keyed by session.server_id).
        """
        ...

    async def delete(self, server_id: str) -> None:
        """Remove the session for a server. Missing sessions are ignored."""
        ...

    async def list_server_ids(self) -> list[str]:
        """List every server with a stored session."""
        ...
