"""
Common Models
=============

Response bodies shared by rolezk services.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    success: bool = False
    error: str = Field(..., description="Human-readable message")
    error_code: str | None = Field(
        default=None,
        description="Stable code, e.g. insufficient_clearance",
    )
    status_code: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class HealthResponse(BaseModel):
    """Service health, including the nullifier store."""

    status: str = Field(default="healthy", description="healthy or degraded")
    service: str
    version: str
    components: dict[str, dict[str, Any]] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
