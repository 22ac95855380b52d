"""SQL session store (SQLAlchemy async).

One row per server in story_sessions; the document column holds the
same JSON document the file store writes. Saving upserts the whole row.

Schema:
    CREATE TABLE story_sessions (
        server_id  TEXT PRIMARY KEY,
        document   TEXT NOT NULL,
        updated_at BIGINT NOT NULL      -- epoch milliseconds
    )
"""

from __future__ import annotations

import json
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from fictioncord.application.ports.session_store import SessionStoreProtocol
from fictioncord.application.ports.time_authority import TimeAuthorityProtocol
from fictioncord.domain.models.story_session import StorySession

logger = get_logger()

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS story_sessions (
    server_id TEXT PRIMARY KEY,
    document TEXT NOT NULL,
    updated_at BIGINT NOT NULL
)
"""


class SqlSessionStore(SessionStoreProtocol):
    """Session store backed by a SQL table.

    Works with any backend supporting INSERT ... ON CONFLICT
    (PostgreSQL, SQLite).
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._session_factory = session_factory
        self._time = time_authority
        self._log = logger.bind(component="sql_session_store")

    async def ensure_schema(self) -> None:
        """Create the story_sessions table if it does not exist."""
        async with self._session_factory() as session:
            await session.execute(text(CREATE_TABLE_SQL))
            await session.commit()
        self._log.info("session_schema_ready")

    async def get(self, server_id: str) -> Optional[StorySession]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT document FROM story_sessions WHERE server_id = :server_id"),
                {"server_id": server_id},
            )
            row = result.first()

        if row is None:
            return None
        try:
            return StorySession.from_dict(json.loads(row[0]))
        except ValueError as e:
            self._log.error("session_document_invalid", server_id=server_id, error=str(e))
            return None

    async def save(self, session_value: StorySession) -> None:
        document = json.dumps(session_value.to_dict(), ensure_ascii=False)
        updated_at = int(self._time.utcnow().timestamp() * 1000)
        async with self._session_factory() as session:
            await session.execute(
                text("""
                    INSERT INTO story_sessions (server_id, document, updated_at)
                    VALUES (:server_id, :document, :updated_at)
                    ON CONFLICT (server_id) DO UPDATE
                    SET document = excluded.document,
                        updated_at = excluded.updated_at
                """),
                {
                    "server_id": session_value.server_id,
                    "document": document,
                    "updated_at": updated_at,
                },
            )
            await session.commit()

    async def delete(self, server_id: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                text("DELETE FROM story_sessions WHERE server_id = :server_id"),
                {"server_id": server_id},
            )
            await session.commit()

    async def list_server_ids(self) -> list[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT server_id FROM story_sessions ORDER BY server_id")
            )
            return [row[0] for row in result.all()]
