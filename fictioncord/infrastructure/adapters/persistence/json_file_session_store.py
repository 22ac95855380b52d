"""JSON file session store.

All sessions live in one document on disk:

    {"sessions": {"<server_id>": {...session document...}, ...}}

Every write rewrites the whole file through a temporary file in the same
directory followed by os.replace, so a crash mid-write leaves the
previous file intact. A missing or unreadable file loads as empty.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from structlog import get_logger

from fictioncord.application.ports.session_store import SessionStoreProtocol
from fictioncord.domain.models.story_session import StorySession

logger = get_logger()


class JsonFileSessionStore(SessionStoreProtocol):
    """Session store backed by a single JSON state file.

    The file is read on every access so it can be inspected or edited
    between runs. Writers within this process are serialized by an
    asyncio.Lock.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()
        self._log = logger.bind(component="json_file_session_store", path=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {"sessions": {}}

        try:
            state = json.loads(raw)
        except json.JSONDecodeError as e:
            self._log.warning("state_file_unreadable", error=str(e))
            return {"sessions": {}}

        if not isinstance(state, dict) or not isinstance(state.get("sessions"), dict):
            self._log.warning("state_file_unreadable", error="missing sessions map")
            return {"sessions": {}}
        return state

    def _write(self, state: dict[str, Any]) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(state, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _decode(self, server_id: str, document: Any) -> Optional[StorySession]:
        try:
            return StorySession.from_dict(document)
        except ValueError as e:
            self._log.error("session_document_invalid", server_id=server_id, error=str(e))
            return None

    async def get(self, server_id: str) -> Optional[StorySession]:
        state = await asyncio.to_thread(self._load)
        document = state["sessions"].get(server_id)
        if document is None:
            return None
        return self._decode(server_id, document)

    async def save(self, session: StorySession) -> None:
        async with self._lock:
            state = await asyncio.to_thread(self._load)
            state["sessions"][session.server_id] = session.to_dict()
            await asyncio.to_thread(self._write, state)

    async def delete(self, server_id: str) -> None:
        async with self._lock:
            state = await asyncio.to_thread(self._load)
            if state["sessions"].pop(server_id, None) is not None:
                await asyncio.to_thread(self._write, state)

    async def list_server_ids(self) -> list[str]:
        state = await asyncio.to_thread(self._load)
        return list(state["sessions"])
