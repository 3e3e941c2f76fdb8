"""Periodic garbage collection for rate limiter state."""

from __future__ import annotations

import asyncio
import logging

from practice_api.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


class RateLimitSweeper:
    """Background task calling ``sweep_expired`` on a fixed interval.

    Owned by the application lifespan: ``start()`` on startup, ``stop()`` on
    shutdown. Sweeping never changes a ``check`` outcome, so timing is not
    critical.
    """

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._limiter = limiter
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        removed = self._limiter.sweep_expired()
        if removed:
            logger.debug("rate_limit.sweep", extra={"removed": removed})
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:
                # keep the loop alive; a failed pass is retried next interval
                logger.exception("rate_limit.sweep_failed")

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("rate_limit.sweeper_started", extra={"interval_s": self._interval})

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("rate_limit.sweeper_stopped")
