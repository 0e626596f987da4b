"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers, and
the rate limiter registry) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from studio_admin.adapters.rate_limit.registry import RateLimiterRegistry
from studio_admin.api.routes import auth_router, health_router, rate_limits_router
from studio_admin.core.config import RateLimitSettings, settings
from studio_admin.core.exception_handlers import setup_exception_handlers
from studio_admin.core.logging import configure_logging
from studio_admin.core.middleware import request_id_middleware
from studio_admin.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


def build_rate_limiters(rate_limit_settings: RateLimitSettings | None = None) -> RateLimiterRegistry:
    """Build one in-memory limiter per configured policy."""

    cfg = rate_limit_settings or settings.rate_limit
    interval = cfg.sweep_interval_ms / 1000 if cfg.sweep_interval_ms else None
    return RateLimiterRegistry.from_configs(cfg.policies(), sweep_interval_seconds=interval)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the limiter sweepers for as long as the app serves requests."""

    registry: RateLimiterRegistry = app.state.rate_limiters
    await registry.start_sweepers()
    logger.info("app.started", extra={"policies": sorted(registry)})
    try:
        yield
    finally:
        await registry.stop_sweepers()
        logger.info("app.stopped")


def create_app(rate_limiters: RateLimiterRegistry | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiters: Registry to use instead of one built from settings.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log, debug=settings.app.debug)

    app = FastAPI(
        title="Studio Admin API",
        description=(
            "Administrative API for the tattoo studio dashboard. Requests are "
            "throttled per client by named policies (auth, api, general) with "
            "bounded in-memory state."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )
    if rate_limiters is None:
        rate_limiters = build_rate_limiters()
    app.state.rate_limiters = rate_limiters

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(auth_router, prefix="/v1")
    app.include_router(rate_limits_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
