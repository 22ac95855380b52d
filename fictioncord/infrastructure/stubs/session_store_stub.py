"""Session store stub.

In-memory SessionStoreProtocol for tests and development. Sessions are
held in a dict keyed by server id; values are immutable so no copying
is needed.
"""

from __future__ import annotations

from typing import Optional

from fictioncord.application.ports.session_store import SessionStoreProtocol
from fictioncord.domain.models.story_session import StorySession


class SessionStoreStub(SessionStoreProtocol):
    """In-memory stub for the session store.

    Attributes:
        save_count: Number of save() calls, for asserting write patterns.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, StorySession] = {}
        self.save_count = 0

    def clear(self) -> None:
        """Clear all stored data for test cleanup."""
        self._sessions.clear()
        self.save_count = 0

    async def get(self, server_id: str) -> Optional[StorySession]:
        return self._sessions.get(server_id)

    async def save(self, session: StorySession) -> None:
        self._sessions[session.server_id] = session
        self.save_count += 1

    async def delete(self, server_id: str) -> None:
        self._sessions.pop(server_id, None)

    async def list_server_ids(self) -> list[str]:
        return list(self._sessions)
