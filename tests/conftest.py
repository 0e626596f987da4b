"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports the settings module,
since ``studio_admin.core.config.settings`` is built at import time.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-admin-key-123,test-admin-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from studio_admin.adapters.rate_limit.registry import RateLimiterRegistry  # noqa: E402
from studio_admin.core.app_factory import create_app  # noqa: E402

START_MS = 1_700_000_000_000.0


class FakeClock:
    """Deterministic millisecond clock for limiter tests."""

    def __init__(self, start: float = START_MS) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, ms: float) -> None:
        self.current += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> RateLimiterRegistry:
    """Default policies (auth/api/general) on a fake clock."""
    return RateLimiterRegistry.from_configs(clock=clock)


@pytest.fixture
def client(registry: RateLimiterRegistry) -> TestClient:
    """Test client over a fresh app; lifespan (sweepers) is not started."""
    return TestClient(create_app(rate_limiters=registry))


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": "test-admin-key-123"}
