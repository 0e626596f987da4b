from __future__ import annotations

from pydantic import BaseModel, Field


class PolicyStats(BaseModel):
    """Configuration and current load of one throttling policy."""

    policy: str
    max_requests: int = Field(..., description="Requests allowed per window")
    window_ms: int = Field(..., description="Window length in milliseconds")
    max_entries: int = Field(..., description="Cap on tracked identifiers")
    tracked_identifiers: int = Field(..., description="Identifiers currently tracked")
    sweeper_running: bool = Field(..., description="Whether the background sweep is active")


class RateLimitOverview(BaseModel):
    policies: list[PolicyStats]


class IdentifierQuota(BaseModel):
    """Quota state for one identifier under one policy (read-only)."""

    policy: str
    identifier: str = Field(..., description="Limiter key, e.g. 'ip:203.0.113.7'")
    limit: int
    remaining: int
    reset_at_ms: int = Field(..., description="Epoch milliseconds when the window ends")


class SweepResult(BaseModel):
    policy: str
    removed: int
    tracked_identifiers: int


class AuthVerifyResponse(BaseModel):
    authenticated: bool
