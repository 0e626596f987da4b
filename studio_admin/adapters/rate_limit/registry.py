"""Named rate limiting policies and their limiters.

One limiter exists per policy ("auth", "api", "general"). The registry is
built once by the application factory and owned by the app; nothing in this
package keeps a module-level limiter.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, Mapping

from studio_admin.adapters.rate_limit.base import AbstractRateLimiter, RateLimiterConfig
from studio_admin.adapters.rate_limit.in_memory import InMemoryRateLimiter, epoch_ms
from studio_admin.adapters.rate_limit.sweeper import CleanupSweeper

logger = logging.getLogger(__name__)

AUTH_POLICY = "auth"
API_POLICY = "api"
GENERAL_POLICY = "general"

DEFAULT_POLICIES: dict[str, RateLimiterConfig] = {
    # Sign-in attempts: 5 per 15 minutes
    AUTH_POLICY: RateLimiterConfig(max_requests=5, window_ms=15 * 60 * 1000, max_entries=10_000),
    API_POLICY: RateLimiterConfig(max_requests=100, window_ms=60 * 1000, max_entries=50_000),
    GENERAL_POLICY: RateLimiterConfig(max_requests=20, window_ms=60 * 1000, max_entries=25_000),
}


class RateLimiterRegistry:
    """Limiters keyed by policy name, plus their background sweepers."""

    def __init__(
        self,
        limiters: Mapping[str, AbstractRateLimiter],
        *,
        default_policy: str = GENERAL_POLICY,
        sweep_interval_seconds: float | None = None,
    ) -> None:
        """Create a registry.

        Args:
            limiters: Limiter per policy name.
            default_policy: Policy used for unknown names; must be present.
            sweep_interval_seconds: Override for every sweeper's interval.
                Defaults to each limiter's own window.

        Raises:
            ValueError: If default_policy has no limiter.
        """
        if default_policy not in limiters:
            raise ValueError(f"default policy {default_policy!r} is not configured")

        self._limiters = dict(limiters)
        self._default_policy = default_policy
        self._sweepers = {
            name: CleanupSweeper(limiter, name=name, interval_seconds=sweep_interval_seconds)
            for name, limiter in self._limiters.items()
        }

    @classmethod
    def from_configs(
        cls,
        configs: Mapping[str, RateLimiterConfig] | None = None,
        *,
        clock: Callable[[], float] = epoch_ms,
        default_policy: str = GENERAL_POLICY,
        sweep_interval_seconds: float | None = None,
    ) -> "RateLimiterRegistry":
        """Build in-memory limiters for each policy config."""

        configs = DEFAULT_POLICIES if configs is None else configs
        limiters = {
            name: InMemoryRateLimiter(config, name=name, clock=clock)
            for name, config in configs.items()
        }
        return cls(
            limiters,
            default_policy=default_policy,
            sweep_interval_seconds=sweep_interval_seconds,
        )

    def __contains__(self, policy: object) -> bool:
        return policy in self._limiters

    def __iter__(self) -> Iterator[str]:
        return iter(self._limiters)

    @property
    def default_policy(self) -> str:
        return self._default_policy

    def get(self, policy: str) -> AbstractRateLimiter:
        """Return the limiter for ``policy``, or the default one if unknown."""
        limiter = self._limiters.get(policy)
        if limiter is None:
            return self._limiters[self._default_policy]
        return limiter

    def items(self) -> Iterator[tuple[str, AbstractRateLimiter]]:
        return iter(self._limiters.items())

    def sweeper_status(self) -> dict[str, bool]:
        """Whether each policy's background sweeper is currently running."""
        return {name: sweeper.running for name, sweeper in self._sweepers.items()}

    async def start_sweepers(self) -> None:
        for sweeper in self._sweepers.values():
            await sweeper.start()

    async def stop_sweepers(self) -> None:
        for sweeper in self._sweepers.values():
            await sweeper.stop()
