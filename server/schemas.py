"""Pydantic schemas for the server's JSON responses."""

from typing import Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every error response."""
    detail: str
    code: str


class HealthResponse(BaseModel):
    """Response model for the liveness endpoint."""
    status: str
    service: str


class ReadyResponse(BaseModel):
    """Response model for the readiness endpoint."""
    ready: bool
    backend: str
    pool: str
    error: Optional[str] = None
