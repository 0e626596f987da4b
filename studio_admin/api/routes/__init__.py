from __future__ import annotations

from studio_admin.api.routes.auth import router as auth_router
from studio_admin.api.routes.health import router as health_router
from studio_admin.api.routes.rate_limits import router as rate_limits_router

__all__ = ["auth_router", "health_router", "rate_limits_router"]
