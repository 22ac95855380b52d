"""
Pytest configuration and shared fixtures for Fictioncord tests.

Testing Standards:
- Async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import pytest
from prometheus_client import CollectorRegistry

from fictioncord.config.session_config import TEST_SESSION_CONFIG, SessionConfig
from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
)
from fictioncord.infrastructure.stubs import ChatCollaboratorStub, SessionStoreStub
from tests.helpers import FakeTimeAuthority


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from fictioncord import __version__

    return __version__


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    return FakeTimeAuthority()


@pytest.fixture
def session_store() -> SessionStoreStub:
    return SessionStoreStub()


@pytest.fixture
def collaborator() -> ChatCollaboratorStub:
    return ChatCollaboratorStub()


@pytest.fixture
def metrics() -> SessionMetricsCollector:
    """Metrics collector on a private registry."""
    return SessionMetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def session_config() -> SessionConfig:
    return TEST_SESSION_CONFIG
