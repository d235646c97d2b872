"""User data models for accountkeeper."""

from datetime import datetime
from pydantic import BaseModel, Field


class User(BaseModel):
    """Public user model. This is the only user shape that leaves the service."""

    id: str = Field(..., description="Unique user identifier (UUID v4)")
    name: str = Field(..., description="User display name (trimmed)")
    email: str = Field(..., description="User email address (lowercase)")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")


class UserRecord(User):
    """Stored user record, including the password hash."""

    password_hash: str = Field(..., description="bcrypt digest of the user's password")

    def to_public(self) -> User:
        """Strip the credential."""
        return User(**self.model_dump(exclude={"password_hash"}))
