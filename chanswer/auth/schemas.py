"""Auth-specific Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    """User information."""

    id: str = Field(..., description="User's unique identifier")
    email: str | None = Field(None, description="User's email address")
    name: str | None = Field(
        None, min_length=1, max_length=128, description="User's full name"
    )


class Session(BaseModel):
    """User session information."""

    user: User | None = Field(None, description="User information")
    access_token: str = Field(..., description="Access token")
    expires_at: datetime | None = Field(None, description="Token expiration timestamp")
