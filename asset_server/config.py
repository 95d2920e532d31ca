"""
Configuration module for the multi-tenant asset server.

All settings come from environment variables, optionally seeded from a
``.env`` file in the working directory.

ENVIRONMENT:
- PORT / HOST: listen address for uvicorn
- ASSETS_ROOT: directory holding one subdirectory per client
- CORS_ORIGINS: comma-separated allow-list of exact origins
- CLIENTS: comma-separated client short-names
- {NAME}_ID / {NAME}_SECRET: credential pair per client (read by the registry)
- RATE_LIMIT_MAX / RATE_LIMIT_WINDOW: requests allowed per window (seconds)
- LOG_LEVEL: root log level
"""

import os
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

from .exceptions import ConfigurationError


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_PORT: int = 4000
DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_ASSETS_ROOT: str = "assets"

DEFAULT_RATE_LIMIT_MAX: int = 120
DEFAULT_RATE_LIMIT_WINDOW: int = 60

# =============================================================================
# SECURITY CONSTANTS
# =============================================================================

CLIENT_ID_HEADER: str = "x-client-id"
CLIENT_SECRET_HEADER: str = "x-client-secret"

CORS_ALLOW_METHODS: str = "GET,POST,OPTIONS"
CORS_ALLOW_HEADERS: str = "Content-Type, Authorization, x-client-id, x-client-secret"


class Settings(BaseModel):
    """
    Process-wide settings, resolved once at startup.

    Attributes:
        port: Listen port
        host: Listen interface
        assets_root: Absolute path holding the per-client directories
        cors_origins: Exact origins allowed to read responses cross-origin
        clients: Client short-names to load credentials for
        rate_limit_max: Requests allowed per caller per window
        rate_limit_window: Window length in seconds
        log_level: Name of the root log level
    """
    port: int = Field(DEFAULT_PORT, description="Listen port")
    host: str = Field(DEFAULT_HOST, description="Listen interface")
    assets_root: Path = Field(..., description="Root directory of client assets")
    cors_origins: List[str] = Field(default_factory=list, description="CORS allow-list")
    clients: List[str] = Field(default_factory=list, description="Configured client names")
    rate_limit_max: int = Field(DEFAULT_RATE_LIMIT_MAX, description="Requests per window")
    rate_limit_window: int = Field(DEFAULT_RATE_LIMIT_WINDOW, description="Window in seconds")
    log_level: str = Field("INFO", description="Root log level")

    class Config:
        frozen = True

    @property
    def rate_limit(self) -> str:
        """Limit in the "N per W seconds" notation of the limits package."""
        return f"{self.rate_limit_max} per {self.rate_limit_window} seconds"


def split_csv(raw: Optional[str]) -> List[str]:
    """Split a comma-separated value, trimming items and dropping empties."""
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


def _read_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = (environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from an environment mapping.

    When no mapping is given, ``.env`` is loaded into the process
    environment first and ``os.environ`` is used.

    Args:
        environ: Explicit environment (tests pass a plain dict)

    Returns:
        Frozen Settings instance

    Raises:
        ConfigurationError: If a numeric setting is malformed
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    assets_root = Path(environ.get("ASSETS_ROOT") or DEFAULT_ASSETS_ROOT).resolve()

    return Settings(
        port=_read_int(environ, "PORT", DEFAULT_PORT),
        host=(environ.get("HOST") or DEFAULT_HOST).strip(),
        assets_root=assets_root,
        cors_origins=split_csv(environ.get("CORS_ORIGINS")),
        clients=split_csv(environ.get("CLIENTS")),
        rate_limit_max=_read_int(environ, "RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX),
        rate_limit_window=_read_int(environ, "RATE_LIMIT_WINDOW", DEFAULT_RATE_LIMIT_WINDOW),
        log_level=(environ.get("LOG_LEVEL") or "INFO").strip().upper(),
    )
