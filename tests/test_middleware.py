import pytest

from asset_server.middleware import SECURITY_HEADERS


# =============================================================================
# CORS
# =============================================================================

def test_allowed_origin_is_echoed(client):
    response = client.get("/health", headers={"Origin": "https://app.example.com"})

    assert response.headers["access-control-allow-origin"] == "https://app.example.com"
    assert response.headers["access-control-allow-credentials"] == "true"
    assert response.headers["access-control-allow-methods"] == "GET,POST,OPTIONS"
    assert "x-client-secret" in response.headers["access-control-allow-headers"]


def test_no_origin_gets_wildcard(client):
    response = client.get("/health")

    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-credentials"] == "true"


def test_disallowed_origin_gets_no_cors_headers(client):
    response = client.get("/health", headers={"Origin": "https://evil.example.com"})

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers
    assert "access-control-allow-credentials" not in response.headers


def test_cors_headers_on_error_responses(client):
    response = client.get("/api/assets", headers={"Origin": "http://localhost:3000"})

    assert response.status_code == 401
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_preflight_returns_204_without_auth(client):
    response = client.options(
        "/api/assets",
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "x-client-id, x-client-secret",
        },
    )

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "https://app.example.com"


def test_preflight_from_disallowed_origin_has_no_cors_headers(client):
    response = client.options("/api/assets", headers={"Origin": "https://evil.example.com"})

    assert response.status_code == 204
    assert "access-control-allow-origin" not in response.headers


def test_options_on_any_path(client):
    assert client.options("/nowhere").status_code == 204


# =============================================================================
# SECURITY HEADERS
# =============================================================================

@pytest.mark.parametrize("path", ["/health", "/assets/acme/logo.png", "/api/assets", "/missing"])
def test_security_headers_on_every_response(client, path):
    response = client.get(path)

    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


def test_assets_can_be_embedded_cross_origin(client):
    response = client.get("/assets/acme/logo.png")

    assert response.headers["cross-origin-resource-policy"] == "cross-origin"
    assert response.headers["x-content-type-options"] == "nosniff"


def test_security_headers_on_preflight(client):
    response = client.options("/api/assets")

    assert response.headers["x-frame-options"] == "SAMEORIGIN"
