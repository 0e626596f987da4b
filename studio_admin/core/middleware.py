"""HTTP middleware for request correlation and access logging.

Every response carries the request id (taken from the incoming header or
generated) and the handling duration. The id lives in a context variable for
the duration of the request so every log line emitted while serving it is
correlated.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from studio_admin.core.config import settings
from studio_admin.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex}"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a request id, time the request, and echo both in headers.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` (or the
            configured header) and ``X-Request-Duration-ms`` set.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or _new_request_id()
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
