from fastapi import APIRouter, Depends

from studio_admin.adapters.rate_limit.registry import AUTH_POLICY
from studio_admin.core.auth import verify_api_key
from studio_admin.core.rate_limit import enforce_rate_limit
from studio_admin.schemas.rate_limit import AuthVerifyResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/verify",
    response_model=AuthVerifyResponse,
    # Throttle before checking the key so failed guesses use up the budget
    dependencies=[Depends(enforce_rate_limit(AUTH_POLICY)), Depends(verify_api_key)],
)
async def verify_credentials() -> AuthVerifyResponse:
    """Confirm that the X-API-Key header holds a valid admin key.

    Used by the dashboard sign-in flow. Guarded by the strict ``auth``
    policy (5 attempts per 15 minutes per client IP by default).

    Raises:
        RateLimitAppError: 429 when the client IP is over its budget.
        AuthenticationAppError: 403 when the key is missing or invalid.
    """
    return AuthVerifyResponse(authenticated=True)
