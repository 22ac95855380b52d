"""Database session factory bootstrap (SQLAlchemy async).

Only used when FICTIONCORD_STORE_URL is set; otherwise sessions are kept
in the JSON state file.

Usage:
    from fictioncord.bootstrap.database import get_session_factory

    session_factory = get_session_factory(url)
    async with session_factory() as session:
        ...
"""

from __future__ import annotations

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

logger = get_logger()

_session_factory: async_sessionmaker[AsyncSession] | None = None
_engine: AsyncEngine | None = None


def normalize_database_url(url: str) -> str:
    """Convert plain PostgreSQL URLs to the asyncpg driver.

    Other URLs (e.g. sqlite+aiosqlite://) are returned unchanged.
    """
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def mask_database_url(url: str) -> str:
    """Hide the password in a database URL for logging."""
    if "@" not in url:
        return url
    before_at, after_at = url.split("@", 1)
    scheme, _, credentials = before_at.partition("://")
    if ":" not in credentials:
        return url
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{after_at}"


def get_session_factory(url: str) -> async_sessionmaker[AsyncSession]:
    """Get the SQLAlchemy async session factory, creating it on first call.

    Args:
        url: Database URL from FICTIONCORD_STORE_URL.
    """
    global _session_factory, _engine

    if _session_factory is None:
        log = logger.bind(component="database_bootstrap")
        url = normalize_database_url(url)
        log.info("creating_database_engine", url=mask_database_url(url))

        _engine = create_async_engine(
            url,
            echo=os.environ.get("SQLALCHEMY_ECHO", "").lower() in ("1", "true", "yes"),
            pool_pre_ping=True,
        )
        _session_factory = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        log.info("database_session_factory_created")

    return _session_factory


def reset_database_bootstrap() -> None:
    """Reset database singleton for testing."""
    global _session_factory, _engine
    _session_factory = None
    _engine = None


async def close_database_engine() -> None:
    """Close the database engine (for graceful shutdown)."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
