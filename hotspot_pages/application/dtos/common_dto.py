"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model."""
    detail: str = Field(..., description="Error message describing what went wrong")


class QuotaErrorResponse(BaseModel):
    """Returned with 402 when a hotspot limit blocks a create."""
    detail: str = Field(..., description="Human readable message", examples=["Hotspot limit reached"])
    reason: str = Field(
        ...,
        description="Which limit was hit",
        examples=["anonymous_limit"],
        pattern="^(anonymous_limit|free_plan_limit)$",
    )
    limit: int = Field(..., description="Hotspot limit for this actor", examples=[10], ge=0)
    current: int = Field(..., description="Hotspots counted against the limit", examples=[10], ge=0)


class ValidationErrorResponse(BaseModel):
    """Validation error response model."""
    detail: str = Field("Invalid request data", description="Error summary")
    errors: list[dict[str, Any]] = Field(default_factory=list, description="Individual validation errors")


class SuccessResponse(BaseModel):
    """Standard success response model."""
    success: bool = Field(True, description="Indicates the operation was successful")
    message: Optional[str] = Field(None, description="Optional success message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", examples=["healthy"])


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["hotspot-pages"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
