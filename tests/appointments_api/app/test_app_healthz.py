from fastapi.testclient import TestClient

from appointments_api.app import create_app


def test_healthz_returns_ok() -> None:
    """`/healthz` が 200 / 期待 JSON を返すことを検証する。"""

    client = TestClient(create_app())

    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_is_echoed() -> None:
    client = TestClient(create_app())

    response = client.get("/healthz", headers={"X-Request-Id": "req-123"})

    assert response.headers["X-Request-Id"] == "req-123"
    assert "X-Response-Time-Ms" in response.headers


def test_request_id_is_generated_when_missing() -> None:
    client = TestClient(create_app())

    response = client.get("/healthz")

    assert response.headers["X-Request-Id"]


def test_cors_allows_configured_origin(monkeypatch) -> None:
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://booking.example.com, https://admin.example.com")
    client = TestClient(create_app())

    response = client.options(
        "/api/appointments",
        headers={
            "Origin": "https://admin.example.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "https://admin.example.com"


def test_cors_rejects_unknown_origin() -> None:
    client = TestClient(create_app())

    response = client.options(
        "/api/appointments",
        headers={
            "Origin": "https://evil.example.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert "access-control-allow-origin" not in response.headers
