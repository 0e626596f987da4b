"""In-memory fixed-window rate limiter with bounded memory.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a lock guards the entry map, so the limiter can be shared
  between the event loop and Starlette's threadpool.
- Fixed window: a caller can get up to ``2 * max_requests`` through in a
  short span straddling a window boundary. Accepted for abuse protection.
"""

from __future__ import annotations

import heapq
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from studio_admin.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimiterConfig,
    RateLimitResult,
)

logger = logging.getLogger(__name__)

# Share of max_entries dropped per eviction pass.
EVICTION_FRACTION = 0.1


def epoch_ms() -> float:
    """Current UNIX time in milliseconds."""
    return time.time() * 1000


@dataclass
class RateLimitEntry:
    """Counter state for one identifier."""

    count: int
    window_reset_at: float
    last_seen_at: float


class InMemoryRateLimiter(AbstractRateLimiter):
    """Fixed-window limiter keyed by an arbitrary identifier string.

    Entries are created lazily on the first request, reset once their window
    has passed, and removed either by :meth:`sweep` (expired windows) or by
    least-recently-seen eviction when more than ``max_entries`` identifiers
    are tracked.
    """

    def __init__(
        self,
        config: RateLimiterConfig,
        *,
        name: str = "default",
        clock: Callable[[], float] = epoch_ms,
    ) -> None:
        """Initialize the limiter.

        Args:
            config: Policy to enforce.
            name: Policy name, used in logs.
            clock: Time source returning UNIX time in milliseconds.
        """
        self._config = config
        self._name = name
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, RateLimitEntry] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryRateLimiter(name={self._name!r}, "
            f"max_requests={self._config.max_requests}, "
            f"window_ms={self._config.window_ms}, "
            f"max_entries={self._config.max_entries}, "
            f"tracked={len(self._entries)})"
        )

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    def is_allowed(self, identifier: str) -> bool:
        with self._lock:
            return self._admit_locked(identifier, self._clock())

    def consume(self, identifier: str) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            allowed = self._admit_locked(identifier, now)
            # Eviction never removes the identifier being admitted.
            entry = self._entries[identifier]
            remaining = max(0, self._config.max_requests - entry.count)
            reset_at = entry.window_reset_at

        retry_after = None
        if not allowed:
            retry_after = max(1, math.ceil((reset_at - now) / 1000))

        return RateLimitResult(
            allowed=allowed,
            limit=self._config.max_requests,
            remaining=remaining,
            reset_at_ms=reset_at,
            retry_after_seconds=retry_after,
        )

    def get_remaining(self, identifier: str) -> int:
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None or self._is_expired(entry, self._clock()):
                return self._config.max_requests
            return max(0, self._config.max_requests - entry.count)

    def get_reset_time(self, identifier: str) -> float:
        with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)
            if entry is None or self._is_expired(entry, now):
                return now + self._config.window_ms
            return entry.window_reset_at

    def get_tracked_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def sweep(self) -> int:
        """Remove every entry whose window has already ended.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired = [k for k, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in expired:
                del self._entries[key]
            tracked = len(self._entries)

        logger.debug(
            "rate_limit.sweep",
            extra={"policy": self._name, "removed": len(expired), "tracked": tracked},
        )
        return len(expired)

    def _is_expired(self, entry: RateLimitEntry, now: float) -> bool:
        return now >= entry.window_reset_at

    def _admit_locked(self, identifier: str, now: float) -> bool:
        entry = self._entries.get(identifier)

        if entry is None or self._is_expired(entry, now):
            self._entries[identifier] = RateLimitEntry(
                count=1,
                window_reset_at=now + self._config.window_ms,
                last_seen_at=now,
            )
            self._evict_if_over_capacity_locked(keep=identifier)
            return True

        entry.last_seen_at = now
        if entry.count >= self._config.max_requests:
            return False

        entry.count += 1
        return True

    def _evict_if_over_capacity_locked(self, *, keep: str) -> None:
        if len(self._entries) <= self._config.max_entries:
            return

        batch = max(1, math.floor(self._config.max_entries * EVICTION_FRACTION))
        oldest = heapq.nsmallest(
            batch,
            (key for key in self._entries if key != keep),
            key=lambda key: self._entries[key].last_seen_at,
        )
        for key in oldest:
            del self._entries[key]

        logger.debug(
            "rate_limit.evicted",
            extra={"policy": self._name, "evicted": len(oldest), "tracked": len(self._entries)},
        )
