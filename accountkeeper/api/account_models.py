"""Request/response models for account and authentication endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from accountkeeper.models.user import User


class LoginResponse(BaseModel):
    """Response model for login."""
    user: User
    token: str
    token_type: str = "bearer"


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str = Field(..., description="Error kind, e.g. 'DuplicateEmail'")
    message: str
    errors: Optional[List[str]] = Field(None, description="Every violated field rule (validation errors only)")


class InfoResponse(BaseModel):
    message: str
    version: str
    environment: str
    status: str = "running"


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    uptime_seconds: float
    user_count: int
