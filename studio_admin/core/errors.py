"""Application-level exception types.

Domain errors carry a stable code so handlers can map them to HTTP status
codes and log them consistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context returned to clients and logged."""

    hint: str
    policy: str
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    provided_key_length: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    # HTTP status used by the global handler
    status_code = 400

    def __post_init__(self) -> None:
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""

    status_code = 403


class NotFoundAppError(AppError):
    """Raised when a named resource (e.g., a policy) does not exist."""

    status_code = 404


class RateLimitAppError(AppError):
    """Raised by the admission dependency when a caller is over quota."""

    status_code = 429

    @property
    def retry_after(self) -> int:
        return int((self.details or {}).get("retry_after", 1))
