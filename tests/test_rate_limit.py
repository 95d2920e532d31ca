import pytest
from fastapi.testclient import TestClient

from asset_server.config import load_settings
from asset_server.main import create_app
from asset_server.registry import load_clients


@pytest.fixture
def limited_app(environ):
    environ["RATE_LIMIT_MAX"] = "3"
    settings = load_settings(environ)
    return create_app(settings, load_clients(settings, environ))


def test_requests_beyond_limit_are_rejected(limited_app):
    with TestClient(limited_app) as http:
        statuses = [http.get("/health").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]


def test_limit_is_shared_across_routes(limited_app):
    with TestClient(limited_app) as http:
        assert http.get("/health").status_code == 200
        assert http.get("/assets/acme/logo.png").status_code == 200
        assert http.get("/api/assets", headers={"x-client-id": "abc", "x-client-secret": "xyz"}).status_code == 200
        assert http.get("/assets/acme/logo.png").status_code == 429


def test_rejected_response_keeps_security_and_cors_headers(limited_app):
    with TestClient(limited_app) as http:
        for _ in range(3):
            http.get("/health")
        response = http.get("/health")

    assert response.status_code == 429
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["access-control-allow-origin"] == "*"


def test_preflight_is_not_counted(limited_app):
    with TestClient(limited_app) as http:
        for _ in range(5):
            assert http.options("/api/assets").status_code == 204
        assert http.get("/health").status_code == 200


def test_each_app_has_its_own_counters(environ):
    environ["RATE_LIMIT_MAX"] = "1"
    settings = load_settings(environ)
    registry = load_clients(settings, environ)

    with TestClient(create_app(settings, registry)) as first:
        assert first.get("/health").status_code == 200
        assert first.get("/health").status_code == 429

    with TestClient(create_app(settings, registry)) as second:
        assert second.get("/health").status_code == 200


def test_unmatched_paths_consume_budget(limited_app):
    with TestClient(limited_app) as http:
        assert http.get("/nowhere").status_code == 404
        assert http.post("/assets/acme/logo.png").status_code == 405
        assert http.get("/health").status_code == 200
        assert http.get("/health").status_code == 429


def test_rejected_response_body_and_retry_after(limited_app):
    with TestClient(limited_app) as http:
        for _ in range(3):
            http.get("/health")
        response = http.get("/health")

    assert response.status_code == 429
    assert response.json()["error"] == "rate_limited"
    assert 1 <= int(response.headers["retry-after"]) <= 60


def test_default_budget_is_120_per_minute(client):
    statuses = [client.get("/health").status_code for _ in range(121)]

    assert statuses[:120] == [200] * 120
    assert statuses[120] == 429
