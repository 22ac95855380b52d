"""Bootstrap wiring for story session dependencies.

The chat collaborator defaults to the in-memory stub; a deployment
with a real chat platform adapter installs it with
set_chat_collaborator() before the app starts.
"""

from __future__ import annotations

from fictioncord.application.ports.chat_collaborator import ChatCollaboratorProtocol
from fictioncord.application.ports.session_store import SessionStoreProtocol
from fictioncord.application.ports.time_authority import TimeAuthorityProtocol
from fictioncord.application.services.session_scheduler import SessionScheduler
from fictioncord.application.services.story_session_service import (
    StorySessionService,
)
from fictioncord.application.services.time_authority_service import (
    SystemTimeAuthority,
)
from fictioncord.bootstrap.database import get_session_factory
from fictioncord.config.session_config import SessionConfig
from fictioncord.infrastructure.adapters.persistence import (
    JsonFileSessionStore,
    SqlSessionStore,
)
from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
    get_session_metrics_collector,
)
from fictioncord.infrastructure.stubs.chat_collaborator_stub import (
    ChatCollaboratorStub,
)

_config: SessionConfig | None = None
_time_authority: TimeAuthorityProtocol | None = None
_session_store: SessionStoreProtocol | None = None
_chat_collaborator: ChatCollaboratorProtocol | None = None
_metrics: SessionMetricsCollector | None = None
_session_service: StorySessionService | None = None
_session_scheduler: SessionScheduler | None = None


def get_session_config() -> SessionConfig:
    """Get session configuration (read from the environment once)."""
    global _config
    if _config is None:
        _config = SessionConfig.from_environment()
    return _config


def get_time_authority() -> TimeAuthorityProtocol:
    global _time_authority
    if _time_authority is None:
        _time_authority = SystemTimeAuthority()
    return _time_authority


def get_session_store() -> SessionStoreProtocol:
    """Get the session store selected by configuration.

    FICTIONCORD_STORE_URL selects the SQL store; otherwise the JSON file
    at FICTIONCORD_STATE_PATH is used.
    """
    global _session_store
    if _session_store is None:
        config = get_session_config()
        if config.store_url:
            _session_store = SqlSessionStore(
                get_session_factory(config.store_url), get_time_authority()
            )
        else:
            _session_store = JsonFileSessionStore(config.state_path)
    return _session_store


def get_chat_collaborator() -> ChatCollaboratorProtocol:
    global _chat_collaborator
    if _chat_collaborator is None:
        _chat_collaborator = ChatCollaboratorStub()
    return _chat_collaborator


def get_session_metrics() -> SessionMetricsCollector:
    global _metrics
    if _metrics is None:
        _metrics = get_session_metrics_collector()
    return _metrics


def get_story_session_service() -> StorySessionService:
    """Get the story session service singleton."""
    global _session_service
    if _session_service is None:
        _session_service = StorySessionService(
            store=get_session_store(),
            collaborator=get_chat_collaborator(),
            time_authority=get_time_authority(),
            config=get_session_config(),
            metrics=get_session_metrics(),
        )
    return _session_service


def get_session_scheduler() -> SessionScheduler:
    """Get the scheduler singleton (one per deployment)."""
    global _session_scheduler
    if _session_scheduler is None:
        _session_scheduler = SessionScheduler(
            session_service=get_story_session_service(),
            time_authority=get_time_authority(),
            interval_seconds=get_session_config().tick_interval_seconds,
        )
    return _session_scheduler


def set_session_config(config: SessionConfig) -> None:
    """Set custom configuration for testing."""
    global _config
    _config = config


def set_time_authority(time_authority: TimeAuthorityProtocol) -> None:
    """Set custom time authority for testing."""
    global _time_authority
    _time_authority = time_authority


def set_session_store(store: SessionStoreProtocol) -> None:
    """Set custom session store for testing."""
    global _session_store
    _session_store = store


def set_chat_collaborator(collaborator: ChatCollaboratorProtocol) -> None:
    """Install a chat collaborator (platform adapter or test double)."""
    global _chat_collaborator
    _chat_collaborator = collaborator


def set_session_metrics(metrics: SessionMetricsCollector) -> None:
    """Set custom metrics collector for testing."""
    global _metrics
    _metrics = metrics


def set_story_session_service(service: StorySessionService) -> None:
    """Set custom story session service for testing."""
    global _session_service
    _session_service = service


def reset_story_session_dependencies() -> None:
    """Reset all singleton instances for testing."""
    global _config
    global _time_authority
    global _session_store
    global _chat_collaborator
    global _metrics
    global _session_service
    global _session_scheduler

    _config = None
    _time_authority = None
    _session_store = None
    _chat_collaborator = None
    _metrics = None
    _session_service = None
    _session_scheduler = None
