"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses map to their ``status_code`` (400, 403, 404, 429)
- RateLimitAppError additionally carries Retry-After / X-RateLimit-* headers
- Unexpected Exception becomes a generic 500 (safety net)
- Every response includes request_id for tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from studio_admin.core.config import settings
from studio_admin.core.errors import AppError, RateLimitAppError
from studio_admin.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _rate_limit_headers(exc: RateLimitAppError) -> dict[str, str]:
    headers = {"Retry-After": str(exc.retry_after)}
    if not settings.rate_limit.include_headers:
        return headers

    details = exc.details or {}
    for header, field in (
        ("X-RateLimit-Limit", "limit"),
        ("X-RateLimit-Remaining", "remaining"),
        ("X-RateLimit-Reset", "reset_at"),
    ):
        if field in details:
            headers[header] = str(details[field])
    return headers


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error as ``{"error": {...}}`` with its HTTP status.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the error's status code and details.
    """
    status_code = exc.status_code

    if not isinstance(exc, RateLimitAppError):
        # Throttling is already logged by the admission dependency
        logger.warning(
            "app_error_handled",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": status_code,
                "has_details": bool(exc.details),
            },
        )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    headers = _rate_limit_headers(exc) if isinstance(exc, RateLimitAppError) else None

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure for debugging while returning a generic message, so no
    stack trace or exception text reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with a FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
