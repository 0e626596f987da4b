"""Rate limiting adapters.

This package keeps the admission decision behind a small interface so the
dashboard can start with per-process in-memory limiters and later move to a
shared store without changing the API layer.
"""

from studio_admin.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimiterConfig,
    RateLimitResult,
)
from studio_admin.adapters.rate_limit.in_memory import InMemoryRateLimiter
from studio_admin.adapters.rate_limit.registry import (
    API_POLICY,
    AUTH_POLICY,
    DEFAULT_POLICIES,
    GENERAL_POLICY,
    RateLimiterRegistry,
)
from studio_admin.adapters.rate_limit.sweeper import CleanupSweeper

__all__ = [
    "API_POLICY",
    "AUTH_POLICY",
    "AbstractRateLimiter",
    "CleanupSweeper",
    "DEFAULT_POLICIES",
    "GENERAL_POLICY",
    "InMemoryRateLimiter",
    "RateLimitResult",
    "RateLimiterConfig",
    "RateLimiterRegistry",
]
