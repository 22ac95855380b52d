"""Vote tally service.

Reads the reactions on the prompt poll through the chat collaborator and
picks the winning prompt. Tallying never fails: when the poll cannot be
read the first-submitted prompt wins.
"""

from __future__ import annotations

from typing import Optional, Sequence

import structlog

from fictioncord.application.ports.chat_collaborator import ChatCollaboratorProtocol
from fictioncord.domain.models.story_session import VOTE_MARKERS, Prompt
from fictioncord.domain.services.vote_selection import (
    FALLBACK_PROMPT_INDEX,
    select_winning_index,
)
from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
)


class VoteTallyService:
    """Select the winning prompt from poll reactions.

    Attributes:
        _collaborator: Chat collaborator used to read the poll.
        _metrics: Optional metrics collector for fallbacks.
    """

    def __init__(
        self,
        collaborator: ChatCollaboratorProtocol,
        metrics: Optional[SessionMetricsCollector] = None,
    ) -> None:
        self._collaborator = collaborator
        self._metrics = metrics
        self._log = structlog.get_logger().bind(service="vote_tally")

    async def select_prompt(
        self,
        channel_id: str,
        poll_ref: Optional[str],
        prompts: Sequence[Prompt],
    ) -> int:
        """Return the index of the winning prompt.

        Args:
            channel_id: Channel the poll was posted in.
            poll_ref: Poll reference stored on the session, if any.
            prompts: Prompts in submission order.

        Returns:
            Winning prompt index. FALLBACK_PROMPT_INDEX when the poll
            reference is missing, the collaborator raises, or the count
            list does not have one entry per prompt.
        """
        log = self._log.bind(channel_id=channel_id, poll_ref=poll_ref)
        markers = VOTE_MARKERS[: len(prompts)]

        if not poll_ref:
            return self._fallback(log, reason="missing_poll_ref")

        try:
            counts = await self._collaborator.tally_poll(channel_id, poll_ref, markers)
        except Exception as e:
            return self._fallback(log, reason="tally_failed", error=str(e))

        if len(counts) != len(markers):
            return self._fallback(
                log,
                reason="count_mismatch",
                expected=len(markers),
                received=len(counts),
            )

        winner = select_winning_index(counts)
        log.info("vote_tallied", counts=list(counts), winner=winner)
        return winner

    def _fallback(self, log: structlog.BoundLogger, reason: str, **context: object) -> int:
        log.warning("vote_tally_fallback", reason=reason, **context)
        if self._metrics is not None:
            self._metrics.record_vote_tally_fallback()
        return FALLBACK_PROMPT_INDEX
