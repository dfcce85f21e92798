"""
API response models for socialgraph REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the non-GraphQL
parts of the API: the error envelope and the health check. The GraphQL
endpoint has its own {"data", "errors"} contract, produced by strawberry.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
