from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from studio_admin.core.rate_limit import get_rate_limiters

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring to verify the API is up.

    Returns:
        dict: ``{"status": "ok"}``.
    """

    return {"status": "ok"}


@router.get("/health/live")
def liveness() -> dict:
    return {"status": "alive"}


@router.get("/health/ready")
def readiness(request: Request) -> JSONResponse:
    """Readiness probe.

    The service is ready once every policy's background sweeper runs; a
    stopped sweeper means expired limiter state is no longer reclaimed.
    """

    sweepers = get_rate_limiters(request).sweeper_status()
    ready = all(sweepers.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "degraded",
            "checks": {"sweepers": sweepers},
        },
    )
