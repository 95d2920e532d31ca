"""
API Routes Module for the multi-tenant asset server.

ENDPOINTS:
- GET /api/assets              - asset index of the authenticated client
- GET|HEAD /assets/{client}/*  - public static files, scoped per client
- GET /health                  - liveness check

MULTI-TENANT SECURITY:
- The index route reads the client from request.state (set by middleware),
  never from query or body
- Static routes resolve the client by name from the registry and only ever
  serve files below that client's asset directory
"""

import logging
import os
from typing import Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from starlette.staticfiles import StaticFiles

from .assets import base_url_of, build_asset_index
from .exceptions import NotFoundError
from .middleware import get_current_client
from .models import Client, ErrorResponse
from .registry import ClientRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


def get_registry(request: Request) -> ClientRegistry:
    """Dependency returning the registry the app was built with."""
    return request.app.state.registry


# =============================================================================
# ASSET INDEX ENDPOINT
# =============================================================================

@router.get(
    "/api/assets",
    response_model=Dict[str, str],
    summary="List client assets",
    description="""
    Map every file of the authenticated client to its public URL.

    Keys are paths relative to the client's directory with the final
    extension removed; values are absolute URLs under /assets/{client}/.
    Returns an empty object when the client has no asset directory yet.
    """,
    responses={
        200: {
            "description": "Asset index",
            "content": {
                "application/json": {
                    "example": {"logo": "http://localhost:4000/assets/acme/logo.png"}
                }
            }
        },
        401: {"model": ErrorResponse, "description": "Missing authentication headers"},
        403: {"model": ErrorResponse, "description": "Invalid client credentials"},
    }
)
def list_assets(request: Request, client: Client = Depends(get_current_client)) -> Dict[str, str]:
    """
    Return the asset index of the authenticated client.

    The walk is blocking filesystem I/O, so this handler is a plain def
    and runs in the threadpool.

    Args:
        request: Inbound request, used for the scheme and host of the URLs
        client: Client resolved by ClientAuthMiddleware

    Returns:
        Mapping of extension-less relative path -> public URL, or an empty
        mapping when the client has no asset directory
    """
    if not client.asset_dir.exists():
        logger.info(f"No asset directory for client: {client.name}")
        return {}

    return build_asset_index(base_url_of(request), client.name, client.asset_dir)


# =============================================================================
# STATIC FILES (ISOLATED PER CLIENT)
# =============================================================================

@router.api_route(
    "/assets/{client_name}/{file_path:path}",
    methods=["GET", "HEAD"],
    summary="Fetch a client asset",
    responses={404: {"description": "Unknown client or file"}},
)
async def serve_asset(
    client_name: str,
    file_path: str,
    request: Request,
    registry: ClientRegistry = Depends(get_registry)
):
    """
    Serve one file from a client's asset directory.

    No credential headers are required; the URLs returned by /api/assets
    are meant to be fetched directly. Range requests, conditional requests
    (ETag / Last-Modified) and path traversal protection come from
    Starlette's StaticFiles. Directory listings are never produced.
    """
    client = registry.find_by_name(client_name)

    if client is None:
        logger.info(f"Asset requested for unknown client: {client_name}")
        raise NotFoundError(f"Unknown client: {client_name}")

    static = StaticFiles(directory=client.asset_dir, check_dir=False, follow_symlink=True)
    relative = os.path.normpath(os.path.join(*file_path.split("/")))
    return await static.get_response(relative, request.scope)


# =============================================================================
# HEALTH CHECK ENDPOINT
# =============================================================================

@router.get("/health", response_class=PlainTextResponse, summary="Health check")
async def health_check() -> str:
    """
    Liveness check.

    Does not require authentication.

    Returns:
        The plain text "OK"
    """
    return "OK"
