"""Rate limiter interfaces.

Request admission depends on this abstraction rather than on the in-memory
implementation, so a shared store (e.g., Redis) can replace the per-process
map later without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimiterConfig:
    """Immutable limiter policy.

    Attributes:
        max_requests: Requests allowed per window for one identifier.
        window_ms: Window length in milliseconds.
        max_entries: Upper bound on concurrently tracked identifiers.
    """

    max_requests: int
    window_ms: int
    max_entries: int

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if self.max_entries < 1:
            raise ValueError("max_entries must be >= 1")


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single admission check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at_ms: Epoch milliseconds when the current window ends.
        retry_after_seconds: Suggested wait in whole seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: float
    retry_after_seconds: int | None

    @property
    def reset_at(self) -> int:
        """Window end as whole epoch seconds (for ``X-RateLimit-Reset``)."""
        return int(self.reset_at_ms // 1000)


class AbstractRateLimiter(ABC):
    """Interface for rate limiters.

    Implementations must be total over identifiers: no string, however long
    or unusual, may cause an exception.
    """

    @property
    @abstractmethod
    def config(self) -> RateLimiterConfig:
        """Policy this limiter enforces."""

    @abstractmethod
    def is_allowed(self, identifier: str) -> bool:
        """Record a request for ``identifier`` and report whether it is admitted."""

    @abstractmethod
    def consume(self, identifier: str) -> RateLimitResult:
        """Same decision as :meth:`is_allowed`, with quota metadata attached."""

    @abstractmethod
    def get_remaining(self, identifier: str) -> int:
        """Requests left in the identifier's current window. Never mutates."""

    @abstractmethod
    def get_reset_time(self, identifier: str) -> float:
        """Epoch milliseconds when the identifier's window ends. Never mutates."""

    @abstractmethod
    def get_tracked_count(self) -> int:
        """Number of identifiers currently tracked."""

    def sweep(self) -> int:
        """Drop expired state. Backends with native expiry have nothing to do."""
        return 0
