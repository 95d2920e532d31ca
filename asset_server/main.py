"""
Multi-Tenant Asset Server - Application Entry Point

ARCHITECTURE OVERVIEW:
┌─────────────────────────────────────────────────────────────────┐
│                         FastAPI App                             │
├─────────────────────────────────────────────────────────────────┤
│  Middleware Layer (outermost first)                             │
│  1. SecurityHeadersMiddleware - hardened headers, CORP relaxed  │
│  2. CORSPolicyMiddleware      - allow-list, OPTIONS -> 204      │
│  3. RateLimitMiddleware       - fixed window per remote address │
│  4. ClientAuthMiddleware      - id/secret headers on /api/*     │
├─────────────────────────────────────────────────────────────────┤
│  Route Handlers (routes.py)                                     │
│  - GET /api/assets            : client asset index              │
│  - GET|HEAD /assets/{client}/*: public static files             │
│  - GET /health                : liveness                        │
├─────────────────────────────────────────────────────────────────┤
│  ClientRegistry (registry.py) : immutable, built at startup     │
└─────────────────────────────────────────────────────────────────┘

STARTUP SEQUENCE:
1. Load settings from the environment (.env supported)
2. Load the client registry; missing credentials abort startup
3. Register middleware and routes
4. Start accepting requests
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .config import Settings, load_settings
from .exceptions import AssetServerError, ConfigurationError, asset_server_error_handler
from .logging_config import setup_logging
from .middleware import (
    ClientAuthMiddleware,
    CORSPolicyMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from .registry import ClientRegistry, load_clients
from .routes import router

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFESPAN (STARTUP/SHUTDOWN)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    registry: ClientRegistry = app.state.registry

    logger.info("=" * 60)
    logger.info("STARTING MULTI-TENANT ASSET SERVER")
    logger.info(f"  - assets root: {settings.assets_root}")
    for client in registry:
        logger.info(f"  - client: {client.name}")
    logger.info(f"  - rate limit: {settings.rate_limit}")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down asset server...")


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ClientRegistry] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Pre-built settings; loaded from the environment when omitted
        registry: Pre-built registry; loaded from settings when omitted

    Returns:
        Configured FastAPI instance

    Raises:
        ConfigurationError: If settings or client credentials are invalid
    """
    if settings is None:
        settings = load_settings()
    if registry is None:
        registry = load_clients(settings)

    app = FastAPI(
        title="Multi-Tenant Asset Server",
        description="""
## Multi-Tenant Static Asset Server

Each client owns an isolated directory of files.

### Usage

List your assets with your credential headers:

```bash
curl "http://localhost:4000/api/assets" \\
  -H "x-client-id: abc" \\
  -H "x-client-secret: xyz"
```

Then fetch any returned URL directly, no headers needed.
        """,
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.registry = registry

    app.add_exception_handler(AssetServerError, asset_server_error_handler)

    # Starlette wraps in reverse order: the last one added runs first
    app.add_middleware(ClientAuthMiddleware, registry=registry)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_max,
        window_seconds=settings.rate_limit_window,
    )
    app.add_middleware(CORSPolicyMiddleware, allow_origins=settings.cors_origins)
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(router)

    return app


# =============================================================================
# RUN WITH UVICORN
# =============================================================================

def run() -> None:
    """Console entry point: load configuration, then serve with uvicorn."""
    try:
        settings = load_settings()
        setup_logging(settings.log_level)
        app = create_app(settings)
    except ConfigurationError as e:
        logging.basicConfig()
        logger.critical(f"Refusing to start: {e.message}")
        sys.exit(1)

    logger.info(f"Asset server running on port {settings.port}")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
