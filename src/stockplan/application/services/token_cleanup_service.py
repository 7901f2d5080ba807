"""Background sweep that deletes stale auth tokens.

Runs as one asyncio task beside request handling. Every sweep opens its
own unit of work through the repository factory, so it never shares a
session with a request. Failures are logged and the loop carries on at
the next interval.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from stockplan.domain.shared.time import utc_now
from stockplan_auth import AuthRepository

logger = logging.getLogger(__name__)

RepositoryFactory = Callable[[], AbstractAsyncContextManager[AuthRepository]]


@dataclass(frozen=True)
class CleanupResult:
    password_reset_tokens_deleted: int
    refresh_tokens_deleted: int


class TokenCleanupService:
    """
    Periodically deletes expired reset codes and expired or revoked refresh tokens.

    Examples
    --------
    >>> cleanup = TokenCleanupService(repository_factory, interval_seconds=3600)
    >>> cleanup.start()        # inside a running event loop
    >>> ...
    >>> await cleanup.stop()   # on shutdown
    """

    DEFAULT_INTERVAL_SECONDS = 60 * 60
    DEFAULT_INITIAL_DELAY_SECONDS = 10

    def __init__(
        self,
        repository_factory: RepositoryFactory,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        initial_delay_seconds: float = DEFAULT_INITIAL_DELAY_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        if interval_seconds <= 0:
            msg = "Cleanup interval must be positive"
            raise ValueError(msg)

        self._repository_factory = repository_factory
        self._interval = interval_seconds
        self._initial_delay = max(initial_delay_seconds, 0)
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> CleanupResult:
        """Run a single cleanup pass and return what was deleted."""
        now = self._clock()
        async with self._repository_factory() as repo:
            reset_deleted = await repo.delete_expired_password_reset_tokens(now)
            refresh_deleted = await repo.delete_stale_refresh_tokens(now)

        logger.info(
            "Auth token cleanup removed %d reset token(s) and %d refresh token(s)",
            reset_deleted,
            refresh_deleted,
        )
        return CleanupResult(
            password_reset_tokens_deleted=reset_deleted,
            refresh_tokens_deleted=refresh_deleted,
        )

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.is_running:
            logger.debug("Auth token cleanup already running")
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            self._run(self._stop_event),
            name="auth-token-cleanup",
        )
        logger.info(
            "Auth token cleanup scheduled every %.0fs (first run in %.0fs)",
            self._interval,
            self._initial_delay,
        )

    async def stop(self) -> None:
        """Signal the loop to exit and wait for an in-flight sweep to finish."""
        if self._task is None:
            return

        if self._stop_event is not None:
            self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None
            self._stop_event = None
        logger.info("Auth token cleanup stopped")

    async def _run(self, stop_event: asyncio.Event) -> None:
        delay = self._initial_delay
        while not await self._wait_for_stop(stop_event, delay):
            try:
                await self.sweep()
            except Exception:
                logger.warning("Auth token cleanup failed", exc_info=True)
            delay = self._interval

    @staticmethod
    async def _wait_for_stop(stop_event: asyncio.Event, timeout: float) -> bool:
        """Return True once stop was requested, False if the timeout elapsed."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True
