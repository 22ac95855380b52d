"""Intent dispatcher.

Executes the intents returned by session transitions against the chat
collaborator. Runs after the new session state has been committed, so a
failed call is logged and counted but never undoes the transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from fictioncord.application.ports.chat_collaborator import ChatCollaboratorProtocol
from fictioncord.domain.models.intents import (
    Announce,
    ArchiveThread,
    Intent,
    OpenDiscussionThread,
    OpenPoll,
    PostTurn,
)
from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
)


@dataclass(frozen=True)
class DispatchOutcome:
    """References created while dispatching.

    Attributes:
        poll_ref: Reference of the poll posted by OpenPoll, if it succeeded.
        thread_ref: Reference of the thread created by OpenDiscussionThread.
        failures: Number of intents whose collaborator call raised.
    """

    poll_ref: Optional[str] = None
    thread_ref: Optional[str] = None
    failures: int = 0


class IntentDispatcher:
    """Run intents in order against the chat collaborator."""

    def __init__(
        self,
        collaborator: ChatCollaboratorProtocol,
        metrics: Optional[SessionMetricsCollector] = None,
    ) -> None:
        self._collaborator = collaborator
        self._metrics = metrics
        self._log = structlog.get_logger().bind(service="intent_dispatcher")

    async def dispatch(self, intents: Sequence[Intent]) -> DispatchOutcome:
        """Execute each intent; one failure does not stop the rest.

        Args:
            intents: Intents in the order they were emitted.

        Returns:
            DispatchOutcome with any created poll and thread references.
        """
        poll_ref: Optional[str] = None
        thread_ref: Optional[str] = None
        failures = 0

        for intent in intents:
            operation = _operation_name(intent)
            try:
                if isinstance(intent, Announce):
                    await self._collaborator.notify(intent.channel_id, intent.text)
                elif isinstance(intent, PostTurn):
                    if intent.thread_id:
                        await self._collaborator.post_to_thread(
                            intent.thread_id, intent.text
                        )
                    else:
                        await self._collaborator.notify(intent.channel_id, intent.text)
                elif isinstance(intent, OpenPoll):
                    poll_ref = await self._collaborator.create_poll(
                        intent.channel_id, intent.text, intent.markers
                    )
                elif isinstance(intent, OpenDiscussionThread):
                    thread_ref = await self._collaborator.create_discussion_thread(
                        intent.channel_id, intent.title, intent.prompt_text
                    )
                elif isinstance(intent, ArchiveThread):
                    await self._collaborator.lock_and_archive(intent.thread_id)
            except Exception as e:
                failures += 1
                self._log.warning(
                    "collaborator_call_failed",
                    operation=operation,
                    error=str(e),
                )
                if self._metrics is not None:
                    self._metrics.record_collaborator_failure(operation)

        return DispatchOutcome(poll_ref=poll_ref, thread_ref=thread_ref, failures=failures)


def _operation_name(intent: Intent) -> str:
    if isinstance(intent, Announce):
        return "notify"
    if isinstance(intent, PostTurn):
        return "post_to_thread" if intent.thread_id else "notify"
    if isinstance(intent, OpenPoll):
        return "create_poll"
    if isinstance(intent, OpenDiscussionThread):
        return "create_discussion_thread"
    return "lock_and_archive"
