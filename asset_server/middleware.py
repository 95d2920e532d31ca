"""
HTTP middleware for the multi-tenant asset server.

MIDDLEWARE STACK (outermost first):
1. SecurityHeadersMiddleware - hardened headers on every response
2. CORSPolicyMiddleware      - origin allow-list, answers OPTIONS with 204
3. RateLimitMiddleware       - fixed-window request budget per caller
4. ClientAuthMiddleware      - x-client-id / x-client-secret on /api/ paths

AUTHENTICATION FLOW:
- Missing header(s)            -> 401 Unauthorized
- Unknown id or wrong secret   -> 403 Forbidden
- Valid pair                   -> Client attached to request.state.client

Static asset URLs (/assets/{client}/...) are deliberately outside the
protected prefix: they are public once the path is known.
"""

import logging
import math
import time
from typing import Iterable, Optional

from fastapi import HTTPException, Request
from fastapi.responses import Response
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from .config import (
    CLIENT_ID_HEADER,
    CLIENT_SECRET_HEADER,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
)
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    RateLimitExceededError,
    error_response,
)
from .models import Client
from .registry import ClientRegistry

logger = logging.getLogger(__name__)


# =============================================================================
# CLIENT AUTHENTICATION
# =============================================================================

class ClientAuthMiddleware(BaseHTTPMiddleware):
    """
    Resolves the calling client from its credential headers.

    Only paths under PROTECTED_PREFIX are checked; everything else passes
    straight through.
    """

    PROTECTED_PREFIX = "/api"

    def __init__(self, app, registry: ClientRegistry):
        super().__init__(app)
        self.registry = registry

    def _is_protected(self, path: str) -> bool:
        return path == self.PROTECTED_PREFIX or path.startswith(self.PROTECTED_PREFIX + "/")

    async def dispatch(self, request: Request, call_next):
        if not self._is_protected(request.url.path):
            return await call_next(request)

        client_id: Optional[str] = request.headers.get(CLIENT_ID_HEADER)
        client_secret: Optional[str] = request.headers.get(CLIENT_SECRET_HEADER)

        if not client_id or not client_secret:
            logger.warning(f"Missing authentication headers for {request.url.path}")
            return error_response(AuthenticationError("Missing authentication headers"))

        client = self.registry.verify(client_id, client_secret)

        if client is None:
            logger.warning(f"Invalid credentials presented for client id: {client_id}")
            return error_response(AuthorizationError("Invalid client credentials"))

        request.state.client = client
        return await call_next(request)


def get_current_client(request: Request) -> Client:
    """
    Dependency returning the client resolved by ClientAuthMiddleware.

    Raises:
        HTTPException: If no client is attached (middleware not installed)
    """
    client = getattr(request.state, "client", None)

    if client is None:
        raise HTTPException(
            status_code=500,
            detail="Client context not found - middleware configuration error"
        )

    return client


# =============================================================================
# CORS
# =============================================================================

class CORSPolicyMiddleware(BaseHTTPMiddleware):
    """
    Origin allow-list CORS handling.

    Requests without an Origin, or from an allowed origin, get permissive
    credentialed CORS headers (Allow-Origin echoes the origin, or "*" when
    absent). Other origins get no CORS headers and the browser blocks the
    read. Every OPTIONS request is answered here with 204 and no body.
    """

    def __init__(self, app, allow_origins: Iterable[str] = ()):
        super().__init__(app)
        self.allow_origins = frozenset(allow_origins)

    def cors_headers(self, origin: Optional[str]) -> dict:
        if origin and origin not in self.allow_origins:
            return {}
        return {
            "Access-Control-Allow-Origin": origin or "*",
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        }

    async def dispatch(self, request: Request, call_next):
        headers = self.cors_headers(request.headers.get("origin"))

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


# =============================================================================
# RATE LIMITING
# =============================================================================

class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window request budget per caller address.

    Every request reaching this layer is counted, whether or not a route
    matches, so 404 and 405 responses consume budget too. Preflight
    requests are answered by the CORS layer first and never get here.
    Counters live in memory and belong to this app instance.
    """

    def __init__(self, app, max_requests: int, window_seconds: int):
        super().__init__(app)
        self.item = RateLimitItemPerSecond(max_requests, window_seconds)
        self.limiter = FixedWindowRateLimiter(MemoryStorage())

    async def dispatch(self, request: Request, call_next):
        caller = get_remote_address(request)

        if not self.limiter.hit(self.item, caller):
            reset_time, _ = self.limiter.get_window_stats(self.item, caller)
            retry_after = max(1, math.ceil(reset_time - time.time()))
            logger.warning(f"Rate limit exceeded for caller: {caller}")
            response = error_response(RateLimitExceededError(f"Rate limit exceeded: {self.item}"))
            response.headers["Retry-After"] = str(retry_after)
            return response

        return await call_next(request)


# =============================================================================
# SECURITY HEADERS
# =============================================================================

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    # Assets are embedded by pages served from other origins
    "Cross-Origin-Resource-Policy": "cross-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the hardened header set to every response without overriding route headers."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
