"""Persistent session store adapters."""

from fictioncord.infrastructure.adapters.persistence.json_file_session_store import (
    JsonFileSessionStore,
)
from fictioncord.infrastructure.adapters.persistence.sql_session_store import (
    SqlSessionStore,
)

__all__ = ["JsonFileSessionStore", "SqlSessionStore"]
