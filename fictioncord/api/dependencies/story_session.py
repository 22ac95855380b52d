"""Story session API dependencies.

Thin FastAPI Depends() adapters over the bootstrap singletons. Tests
override them with set_* in fictioncord.bootstrap.story_session.
"""

from fictioncord.application.services.session_scheduler import SessionScheduler
from fictioncord.application.services.story_session_service import (
    StorySessionService,
)
from fictioncord.bootstrap.story_session import (
    get_session_metrics,
    get_session_scheduler,
    get_story_session_service,
)
from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
)


def get_session_service() -> StorySessionService:
    return get_story_session_service()


def get_scheduler() -> SessionScheduler:
    return get_session_scheduler()


def get_metrics_collector() -> SessionMetricsCollector:
    return get_session_metrics()
