"""
Pydantic models for the multi-tenant asset server.

- Client: one tenant, resolved at startup from configuration
- ErrorResponse: JSON body returned for every handled error
"""

from pathlib import Path

from pydantic import BaseModel, Field


# =============================================================================
# TENANT MODELS
# =============================================================================

class Client(BaseModel):
    """
    Represents a tenant owning an isolated asset directory.

    MULTI-TENANT ISOLATION:
    - The id/secret pair authenticates index queries
    - The name is both the public URL segment and the on-disk subdirectory
    - asset_dir is computed server-side as ASSETS_ROOT/name

    Attributes:
        id: Unique client identifier, used for authentication lookup
        name: Tenant short-name (URL segment and directory name)
        secret: Shared secret compared on every index request
        asset_dir: Absolute path of the tenant's asset directory
    """
    id: str = Field(..., description="Unique client identifier")
    name: str = Field(..., description="Tenant short-name")
    secret: str = Field(..., description="Shared secret", repr=False)
    asset_dir: Path = Field(..., description="Absolute asset directory")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "abc",
                "name": "acme",
                "secret": "xyz",
                "asset_dir": "/srv/assets/acme",
            }
        }


# =============================================================================
# API RESPONSE MODELS
# =============================================================================

class ErrorResponse(BaseModel):
    """
    Standard error response model.

    Attributes:
        detail: Human-readable error message
        error: Error code for programmatic handling
    """
    detail: str = Field(..., description="Error message")
    error: str = Field(..., description="Error code")

    class Config:
        json_schema_extra = {
            "example": {
                "detail": "Invalid client credentials",
                "error": "forbidden"
            }
        }
