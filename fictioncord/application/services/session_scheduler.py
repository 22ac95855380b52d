"""Session scheduler background service.

Runs a background loop that scans every stored session once per tick
and, per session, fires due reminders and then forced transitions for
expired deadlines. It calls the same StorySessionService operations as
chat commands, so both paths share one transition implementation and
one per-server lock.

Note:
    This service should be started with the application lifecycle
    and stopped when the application shuts down. Only one scheduler
    should run per deployment.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import structlog

from fictioncord.config.session_config import DEFAULT_TICK_INTERVAL_SECONDS

if TYPE_CHECKING:
    from fictioncord.application.ports.time_authority import TimeAuthorityProtocol
    from fictioncord.application.services.story_session_service import (
        StorySessionService,
    )


@dataclass(frozen=True)
class TickSummary:
    """What one scheduler tick did.

    Attributes:
        scanned: Sessions examined.
        failed: Sessions whose processing raised.
    """

    scanned: int
    failed: int


class SessionScheduler:
    """Background story session scheduler.

    Attributes:
        running: Whether the scheduler is currently running.
        interval_seconds: The tick interval in seconds.

    Example:
        >>> scheduler = SessionScheduler(session_service, time_authority)
        >>> await scheduler.start()
        >>> # ... application runs ...
        >>> await scheduler.stop()
    """

    def __init__(
        self,
        session_service: "StorySessionService",
        time_authority: "TimeAuthorityProtocol",
        interval_seconds: int = DEFAULT_TICK_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the scheduler.

        Args:
            session_service: Service whose process_session() runs per session.
            time_authority: Clock used to measure tick duration.
            interval_seconds: The tick interval in seconds.
        """
        self._sessions = session_service
        self._time = time_authority
        self._interval = interval_seconds
        self._running: bool = False
        self._task: Optional[asyncio.Task[None]] = None
        self._log = structlog.get_logger().bind(service="session_scheduler")

    @property
    def running(self) -> bool:
        """Check if the scheduler is running."""
        return self._running

    @property
    def interval_seconds(self) -> int:
        """Get the tick interval in seconds."""
        return self._interval

    async def start(self) -> None:
        """Start the scheduling loop.

        Note:
            Calling start multiple times is safe (idempotent).
        """
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        self._log.info("session_scheduler_started", interval=self._interval)

    async def stop(self) -> None:
        """Stop the scheduling loop gracefully.

        Cancels the background task and waits for it to complete.
        Calling stop when not running is safe.
        """
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._log.info("session_scheduler_stopped")

    async def _run_loop(self) -> None:
        """Internal scheduling loop.

        Runs one tick per interval. Exceptions are logged so the loop
        keeps going.
        """
        while self._running:
            try:
                started = self._time.monotonic()
                summary = await self.run_once()
                elapsed = self._time.monotonic() - started

                self._log.debug(
                    "scheduler_tick_complete",
                    scanned=summary.scanned,
                    failed=summary.failed,
                    elapsed_seconds=elapsed,
                )

                # Sleep for remainder of interval
                await asyncio.sleep(max(0, self._interval - elapsed))

            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._log.error("scheduler_tick_failed", error=str(e))
                await asyncio.sleep(self._interval)

    async def run_once(self) -> TickSummary:
        """Run a single tick over every stored session.

        One session failing is logged and does not stop the others.

        Returns:
            TickSummary for the tick.

        Note:
            In production, use start() and stop() instead.
        """
        server_ids = await self._sessions.list_server_ids()
        failed = 0
        for server_id in server_ids:
            try:
                await self._sessions.process_session(server_id)
            except Exception as e:
                failed += 1
                self._log.error(
                    "session_processing_failed",
                    server_id=server_id,
                    error=str(e),
                )
        return TickSummary(scanned=len(server_ids), failed=failed)
