"""
Common API models used across different endpoints.

These models represent shared concepts like errors, base responses and the
stored-result summary every image endpoint returns.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class APIError(BaseModel):
    """Standard error response format."""
    error: str = Field(..., description="Human-readable error message, shown inline by the UI")
    error_code: str = Field(..., description="Machine-readable error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utcnow)

class APIResponse(BaseModel):
    """Base response wrapper for all API endpoints."""
    success: bool = Field(..., description="Whether the request was successful")
    message: Optional[str] = Field(None, description="Human-readable response message")
    timestamp: datetime = Field(default_factory=_utcnow)

class StoredImage(BaseModel):
    """A processed image kept in the result store for download."""
    result_id: str = Field(..., description="Result store key")
    filename: str = Field(..., description="Suggested download filename")
    media_type: str
    download_url: str = Field(..., description="Relative URL serving the image as an attachment")

class HealthStatus(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    uptime: float = Field(..., description="Uptime in seconds")
    dependencies: Dict[str, str] = Field(..., description="Status of external dependencies")
