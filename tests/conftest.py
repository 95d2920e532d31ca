"""
Pytest fixtures for asset server tests.

Every test gets its own assets root under tmp_path, an explicit environment
mapping (never the real process environment) and a fresh app instance, so
rate-limit counters never leak between tests.
"""

import pytest
from fastapi.testclient import TestClient

from asset_server.config import load_settings
from asset_server.main import create_app
from asset_server.registry import load_clients

LOGO_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


@pytest.fixture
def assets_root(tmp_path):
    """assets/acme with a logo and a nested icon; no directory for globex."""
    root = tmp_path / "assets"
    acme = root / "acme"
    (acme / "icons").mkdir(parents=True)
    (acme / "logo.png").write_bytes(LOGO_BYTES)
    (acme / "icons" / "home.svg").write_text("<svg/>")
    return root


@pytest.fixture
def environ(assets_root):
    return {
        "ASSETS_ROOT": str(assets_root),
        "CLIENTS": "acme, globex",
        "ACME_ID": "abc",
        "ACME_SECRET": "xyz",
        "GLOBEX_ID": "def",
        "GLOBEX_SECRET": "uvw",
        "CORS_ORIGINS": "https://app.example.com,http://localhost:3000",
    }


@pytest.fixture
def settings(environ):
    return load_settings(environ)


@pytest.fixture
def registry(settings, environ):
    return load_clients(settings, environ)


@pytest.fixture
def client(settings, registry):
    """TestClient around a freshly built app; lifespan runs inside the block."""
    with TestClient(create_app(settings, registry)) as test_client:
        yield test_client


@pytest.fixture
def acme_headers():
    return {"x-client-id": "abc", "x-client-secret": "xyz"}
