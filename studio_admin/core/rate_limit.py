"""Rate limiting dependency for FastAPI routes.

This module wires the limiter registry into the HTTP layer. The registry is
owned by the application (``app.state.rate_limiters``); routes only declare
which policy guards them:

    @router.post("/login", dependencies=[Depends(enforce_rate_limit("auth"))])

Keying:
- The ``auth`` policy is always keyed by client IP, so rotating API keys
  cannot dodge the sign-in budget.
- Other policies use the API key when one is sent, otherwise the client IP.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated, Awaitable, Callable

from fastapi import Header, Request

from studio_admin.adapters.rate_limit.registry import AUTH_POLICY, RateLimiterRegistry
from studio_admin.core.config import settings
from studio_admin.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

# Checked in order; first non-empty value wins
_PROXY_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_rate_limiters(request: Request) -> RateLimiterRegistry:
    """Return the limiter registry owned by the running application."""

    return request.app.state.rate_limiters


def resolve_client_ip(request: Request, *, trust_proxy_headers: bool = False) -> str:
    """Best-effort client IP for keying limits.

    Forwarding headers are client-controlled unless a proxy overwrites them,
    so they are ignored by default and the socket peer is used. Behind
    uvicorn's ``proxy_headers`` the peer is already the real client.

    Args:
        request: FastAPI request.
        trust_proxy_headers: Honour forwarding headers set by a reverse proxy.

    Returns:
        str: Client IP, or ``"unknown"`` when nothing identifies the peer.
    """

    if trust_proxy_headers:
        for header in _PROXY_IP_HEADERS:
            value = request.headers.get(header)
            if not value:
                continue
            # X-Forwarded-For is "client, proxy1, proxy2"
            candidate = value.split(",")[0].strip()
            if candidate:
                return candidate

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def build_rate_limit_key(policy: str, request: Request, x_api_key: str | None) -> str:
    """Build the namespaced limiter key for the current request."""

    if x_api_key and policy != AUTH_POLICY:
        return f"api_key:{x_api_key}"

    client_ip = resolve_client_ip(
        request,
        trust_proxy_headers=settings.rate_limit.trust_proxy_headers,
    )
    return f"ip:{client_ip}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing secrets or IPs."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def enforce_rate_limit(policy: str) -> Callable[..., Awaitable[None]]:
    """Create a FastAPI dependency that admits requests under ``policy``.

    Args:
        policy: Policy name ("auth", "api", "general"). Unknown names fall
            back to the registry's default policy.

    Returns:
        An async dependency raising RateLimitAppError (HTTP 429) on denial.
    """

    async def dependency(
        request: Request,
        x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    ) -> None:
        if not settings.rate_limit.enabled:
            return

        limiter = get_rate_limiters(request).get(policy)
        key = build_rate_limit_key(policy, request, x_api_key)
        key_hash = _hash_limiter_key(key)
        key_type = key.split(":", 1)[0]

        result = limiter.consume(key)
        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "policy": policy,
                    "key_type": key_type,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return

        retry_after = result.retry_after_seconds or 1
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "policy": policy,
                "key_type": key_type,
                "key_hash": key_hash,
                "limit": result.limit,
                "window_ms": limiter.config.window_ms,
                "retry_after_s": retry_after,
            },
        )

        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message="Too many requests",
            details={
                "policy": policy,
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": result.reset_at,
                "retry_after": retry_after,
            },
        )

    dependency.__name__ = f"enforce_rate_limit_{policy}"
    return dependency
