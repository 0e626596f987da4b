"""Tests for the rate limiting dependency and 429 responses."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from studio_admin.adapters.rate_limit.registry import RateLimiterRegistry
from studio_admin.core.config import settings
from studio_admin.core.exception_handlers import setup_exception_handlers
from studio_admin.core.rate_limit import (
    build_rate_limit_key,
    enforce_rate_limit,
    resolve_client_ip,
)

START_MS = 1_700_000_000_000.0


def _request(headers: dict[str, str] | None = None, host: str | None = "10.1.1.1"):
    request = MagicMock()
    request.headers = {k.lower(): v for k, v in (headers or {}).items()}
    request.client = SimpleNamespace(host=host) if host is not None else None
    return request


@pytest.fixture
def throttled_app(registry: RateLimiterRegistry) -> FastAPI:
    """Minimal app with one route per policy."""
    app = FastAPI()
    app.state.rate_limiters = registry
    setup_exception_handlers(app)

    @app.get("/general", dependencies=[Depends(enforce_rate_limit("general"))])
    async def general_route() -> dict:
        return {"ok": True}

    @app.post("/login", dependencies=[Depends(enforce_rate_limit("auth"))])
    async def login_route() -> dict:
        return {"ok": True}

    return app


@pytest.fixture
def throttled_client(throttled_app: FastAPI) -> TestClient:
    return TestClient(throttled_app)


class TestResolveClientIp:
    def test_first_forwarded_for_entry_wins(self) -> None:
        request = _request({"X-Forwarded-For": " 203.0.113.7 , 10.0.0.1", "X-Real-IP": "198.51.100.2"})

        assert resolve_client_ip(request, trust_proxy_headers=True) == "203.0.113.7"

    def test_falls_back_through_proxy_headers(self) -> None:
        assert resolve_client_ip(_request({"X-Real-IP": "198.51.100.2"}), trust_proxy_headers=True) == "198.51.100.2"
        assert resolve_client_ip(_request({"CF-Connecting-IP": "192.0.2.9"}), trust_proxy_headers=True) == "192.0.2.9"

    def test_uses_socket_peer_without_headers(self) -> None:
        assert resolve_client_ip(_request()) == "10.1.1.1"

    def test_unknown_when_nothing_identifies_client(self) -> None:
        assert resolve_client_ip(_request(host=None)) == "unknown"

    def test_proxy_headers_ignored_by_default(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.7", "X-Real-IP": "198.51.100.2"})

        assert resolve_client_ip(request) == "10.1.1.1"

    def test_empty_forwarded_for_is_skipped(self) -> None:
        request = _request({"X-Forwarded-For": " , ", "X-Real-IP": "198.51.100.2"})

        assert resolve_client_ip(request, trust_proxy_headers=True) == "198.51.100.2"


class TestBuildRateLimitKey:
    def test_api_key_takes_precedence(self) -> None:
        assert build_rate_limit_key("api", _request(), "secret") == "api_key:secret"

    def test_spoofed_forwarded_for_does_not_change_key(self) -> None:
        request = _request({"X-Forwarded-For": "10.0.0.99"})

        assert build_rate_limit_key("auth", request, None) == "ip:10.1.1.1"

    def test_ip_used_without_api_key(self) -> None:
        assert build_rate_limit_key("general", _request(), None) == "ip:10.1.1.1"

    def test_auth_policy_always_keys_by_ip(self) -> None:
        assert build_rate_limit_key("auth", _request(), "secret") == "ip:10.1.1.1"


class TestEnforceRateLimit:
    def test_allows_until_limit_then_returns_429(self, throttled_client: TestClient) -> None:
        for _ in range(20):
            assert throttled_client.get("/general").status_code == 200

        response = throttled_client.get("/general")

        assert response.status_code == 429
        error = response.json()["error"]
        assert error["code"] == "rate_limit_exceeded"
        assert error["message"] == "Too many requests"
        assert error["details"]["policy"] == "general"
        assert error["details"]["remaining"] == 0

    def test_429_carries_rate_limit_headers(self, throttled_client: TestClient) -> None:
        for _ in range(5):
            throttled_client.post("/login")

        response = throttled_client.post("/login")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "900"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["X-RateLimit-Reset"] == str(int((START_MS + 900_000) // 1000))

    def test_headers_can_be_disabled_except_retry_after(
        self, throttled_client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings.rate_limit, "include_headers", False)
        for _ in range(5):
            throttled_client.post("/login")

        response = throttled_client.post("/login")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "900"
        assert "X-RateLimit-Limit" not in response.headers

    def test_window_reset_restores_access(self, throttled_client: TestClient, clock) -> None:
        for _ in range(5):
            throttled_client.post("/login")
        assert throttled_client.post("/login").status_code == 429

        clock.advance(900_000)

        assert throttled_client.post("/login").status_code == 200

    def test_clients_are_throttled_independently(
        self, throttled_client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings.rate_limit, "trust_proxy_headers", True)
        for _ in range(5):
            throttled_client.post("/login", headers={"X-Forwarded-For": "203.0.113.7"})
        assert throttled_client.post("/login", headers={"X-Forwarded-For": "203.0.113.7"}).status_code == 429

        assert throttled_client.post("/login", headers={"X-Forwarded-For": "203.0.113.8"}).status_code == 200

    def test_rotating_forwarded_for_does_not_bypass_auth_policy(self, throttled_client: TestClient) -> None:
        codes = [
            throttled_client.post("/login", headers={"X-Forwarded-For": f"10.0.0.{i}"}).status_code
            for i in range(50)
        ]

        assert codes[:5] == [200] * 5
        assert set(codes[5:]) == {429}

    def test_rotating_api_keys_does_not_bypass_auth_policy(self, throttled_client: TestClient) -> None:
        for i in range(5):
            throttled_client.post("/login", headers={"X-API-Key": f"guess-{i}"})

        assert throttled_client.post("/login", headers={"X-API-Key": "guess-6"}).status_code == 429

    def test_api_key_callers_get_their_own_budget(self, throttled_client: TestClient) -> None:
        for _ in range(20):
            throttled_client.get("/general")
        assert throttled_client.get("/general").status_code == 429

        assert throttled_client.get("/general", headers={"X-API-Key": "k1"}).status_code == 200

    def test_disabled_throttling_is_noop(
        self, throttled_client: TestClient, registry: RateLimiterRegistry, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings.rate_limit, "enabled", False)

        for _ in range(10):
            assert throttled_client.post("/login").status_code == 200
        assert registry.get("auth").get_tracked_count() == 0

    def test_exceeded_log_does_not_contain_raw_identifier(
        self, throttled_client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        headers = {"X-Forwarded-For": "203.0.113.99"}
        for _ in range(5):
            throttled_client.post("/login", headers=headers)

        with caplog.at_level("WARNING", logger="studio_admin.core.rate_limit"):
            throttled_client.post("/login", headers=headers)

        records = [r for r in caplog.records if r.getMessage() == "rate_limit.exceeded"]
        assert len(records) == 1
        assert records[0].policy == "auth"
        assert len(records[0].key_hash) == 16
        assert "203.0.113.99" not in caplog.text
