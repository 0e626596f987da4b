from __future__ import annotations

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert generated.startswith("req_")
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_request_id_is_echoed_in_error_bodies(client: TestClient):
    resp = client.get("/v1/admin/rate-limits", headers={"X-Request-ID": "corr-42"})

    assert resp.status_code == 403
    assert resp.json()["error"]["request_id"] == "corr-42"
    assert resp.headers.get("X-Request-ID") == "corr-42"


def test_throttled_responses_keep_request_id(client: TestClient):
    for _ in range(5):
        client.post("/v1/auth/verify", headers={"X-API-Key": "wrong"})

    resp = client.post("/v1/auth/verify", headers={"X-Request-ID": "corr-429"})

    assert resp.status_code == 429
    assert resp.headers.get("X-Request-ID") == "corr-429"
    assert resp.json()["error"]["request_id"] == "corr-429"
