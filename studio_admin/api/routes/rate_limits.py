"""Monitoring endpoints over the limiter registry.

Read-only except for the manual sweep, which only drops state that has
already expired.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from studio_admin.adapters.rate_limit.base import AbstractRateLimiter
from studio_admin.adapters.rate_limit.registry import API_POLICY
from studio_admin.core.auth import verify_api_key
from studio_admin.core.errors import NotFoundAppError, ValidationAppError
from studio_admin.core.rate_limit import enforce_rate_limit, get_rate_limiters
from studio_admin.schemas.rate_limit import (
    IdentifierQuota,
    PolicyStats,
    RateLimitOverview,
    SweepResult,
)

router = APIRouter(
    prefix="/admin/rate-limits",
    tags=["Rate Limits"],
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit(API_POLICY))],
)


def _get_policy_limiter(request: Request, policy: str) -> AbstractRateLimiter:
    # Admission falls back to the default policy; inspection must not.
    registry = get_rate_limiters(request)
    if policy not in registry:
        raise NotFoundAppError(
            code="unknown_policy",
            message=f"Unknown rate limit policy: {policy}",
            details={"hint": f"Known policies: {', '.join(sorted(registry))}"},
        )
    return registry.get(policy)


@router.get("", response_model=RateLimitOverview)
def list_policies(request: Request) -> RateLimitOverview:
    """Report configuration and tracked-identifier counts for every policy."""

    registry = get_rate_limiters(request)
    sweepers = registry.sweeper_status()
    return RateLimitOverview(
        policies=[
            PolicyStats(
                policy=name,
                max_requests=limiter.config.max_requests,
                window_ms=limiter.config.window_ms,
                max_entries=limiter.config.max_entries,
                tracked_identifiers=limiter.get_tracked_count(),
                sweeper_running=sweepers.get(name, False),
            )
            for name, limiter in registry.items()
        ]
    )


@router.get("/{policy}/identifiers/{identifier:path}", response_model=IdentifierQuota)
def get_identifier_quota(request: Request, policy: str, identifier: str) -> IdentifierQuota:
    """Show remaining quota and window end for one limiter key.

    ``identifier`` is the key as the limiter stores it, e.g. ``ip:203.0.113.7``
    or ``api_key:<key>``. Looking it up does not count as a request.
    """

    limiter = _get_policy_limiter(request, policy)
    if not identifier.strip():
        raise ValidationAppError(
            code="invalid_identifier",
            message="Identifier must not be empty",
            details={"hint": "Use the limiter key, e.g. ip:203.0.113.7"},
        )
    return IdentifierQuota(
        policy=policy,
        identifier=identifier,
        limit=limiter.config.max_requests,
        remaining=limiter.get_remaining(identifier),
        reset_at_ms=int(limiter.get_reset_time(identifier)),
    )


@router.post("/{policy}/sweep", response_model=SweepResult)
def sweep_policy(request: Request, policy: str) -> SweepResult:
    """Drop expired entries now instead of waiting for the background sweep."""

    limiter = _get_policy_limiter(request, policy)
    removed = limiter.sweep()
    return SweepResult(
        policy=policy,
        removed=removed,
        tracked_identifiers=limiter.get_tracked_count(),
    )
