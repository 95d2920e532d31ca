"""
Error taxonomy for the asset server.

Request-time errors carry an HTTP status and a short error code and are
rendered as ErrorResponse JSON. ConfigurationError is raised only while
starting up and is fatal.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from .models import ErrorResponse


class AssetServerError(Exception):
    """Base class for all errors raised by the asset server."""

    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(AssetServerError):
    """Invalid or incomplete configuration detected at startup."""

    error = "configuration_error"


class AuthenticationError(AssetServerError):
    """Authentication headers are missing."""

    status_code = 401
    error = "unauthorized"


class AuthorizationError(AssetServerError):
    """Client id is unknown or the secret does not match."""

    status_code = 403
    error = "forbidden"


class NotFoundError(AssetServerError):
    """Unknown client name or missing asset."""

    status_code = 404
    error = "not_found"


class RateLimitExceededError(AssetServerError):
    """Caller exceeded its request budget for the current window."""

    status_code = 429
    error = "rate_limited"


def error_response(exc: AssetServerError) -> JSONResponse:
    """Render an AssetServerError as a JSON response."""
    body = ErrorResponse(detail=exc.message, error=exc.error)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def asset_server_error_handler(request: Request, exc: AssetServerError) -> JSONResponse:
    return error_response(exc)
