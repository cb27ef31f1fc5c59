"""
Common API models used across different endpoints.

These models represent shared concepts like base responses and health status.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

class APIResponse(BaseModel):
    """Base response wrapper for all API endpoints."""
    success: bool = Field(..., description="Whether the request was successful")
    message: Optional[str] = Field(None, description="Human-readable response message")
    notifications: List[str] = Field(default_factory=list, description="User-facing alerts raised since the last response")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

class HealthStatus(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    uptime: float = Field(..., description="Uptime in seconds")
    dependencies: Dict[str, str] = Field(..., description="Status of internal dependencies")
