"""Background sweep of expired limiter state.

Eviction only runs when a new identifier shows up, so callers that simply
stop sending requests would otherwise linger in memory. A sweeper is an
asyncio task that calls :meth:`AbstractRateLimiter.sweep` on a fixed interval
for as long as the owning application runs.
"""

from __future__ import annotations

import asyncio
import logging

from studio_admin.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)


class CleanupSweeper:
    """Periodically sweeps one limiter on the running event loop."""

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        *,
        name: str = "default",
        interval_seconds: float | None = None,
    ) -> None:
        """Create a sweeper.

        Args:
            limiter: Limiter to sweep.
            name: Policy name, used in logs.
            interval_seconds: Delay between sweeps. Defaults to the limiter's
                window length.

        Raises:
            ValueError: If interval_seconds is not positive.
        """
        if interval_seconds is None:
            interval_seconds = limiter.config.window_ms / 1000
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._limiter = limiter
        self._name = name
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the sweep loop. Calling it twice keeps the existing task."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"rate-limit-sweeper:{self._name}")
        logger.info(
            "rate_limit.sweeper_started",
            extra={"policy": self._name, "interval_s": self._interval},
        )

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
        logger.info("rate_limit.sweeper_stopped", extra={"policy": self._name})

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._limiter.sweep()
            except Exception:
                logger.error(
                    "rate_limit.sweep_failed",
                    extra={"policy": self._name},
                    exc_info=True,
                )
