"""In-memory stub implementations for testing and development."""

from fictioncord.infrastructure.stubs.chat_collaborator_stub import (
    ChatCollaboratorStub,
    CollaboratorCall,
    CollaboratorUnavailableError,
)
from fictioncord.infrastructure.stubs.session_store_stub import SessionStoreStub

__all__: list[str] = [
    "ChatCollaboratorStub",
    "CollaboratorCall",
    "CollaboratorUnavailableError",
    "SessionStoreStub",
]
