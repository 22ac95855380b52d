"""Application ports (hexagonal interfaces) for Fictioncord."""

from fictioncord.application.ports.chat_collaborator import ChatCollaboratorProtocol
from fictioncord.application.ports.session_store import SessionStoreProtocol
from fictioncord.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "ChatCollaboratorProtocol",
    "SessionStoreProtocol",
    "TimeAuthorityProtocol",
]
