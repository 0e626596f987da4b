from __future__ import annotations

from fastapi.testclient import TestClient

from studio_admin.core.app_factory import create_app


def test_health_is_open_and_unthrottled(client: TestClient) -> None:
    for _ in range(50):
        response = client.get("/health")
        assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_liveness(client: TestClient) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_degraded_without_sweepers(client: TestClient) -> None:
    response = client.get("/health/ready")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "degraded"
    assert body["checks"]["sweepers"] == {"auth": False, "api": False, "general": False}


def test_lifespan_runs_sweepers(registry) -> None:
    app = create_app(rate_limiters=registry)

    with TestClient(app) as client:
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    assert not any(registry.sweeper_status().values())


def test_openapi_exempts_health_from_api_key(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    assert schema["components"]["securitySchemes"]["ApiKeyAuth"]["name"] == "X-API-Key"
    assert schema["paths"]["/health"]["get"]["security"] == []
    assert schema["paths"]["/health/ready"]["get"]["security"] == []
    assert "security" not in schema["paths"]["/v1/auth/verify"]["post"]
