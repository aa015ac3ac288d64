from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class TokenPair(BaseModel):
    """Access and refresh tokens."""
    token_type: str = Field("bearer", description="Token type, typically 'bearer'")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class RefreshRequest(BaseModel):
    """Request to refresh an access token."""
    refresh_token: str = Field(..., description="Refresh token")


class RegisterRequest(BaseModel):
    """Registration details for creating a new user."""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=8, max_length=72, description="User password")
    full_name: Optional[str] = Field(None, description="Full name")


class UserRead(BaseModel):
    """User read model."""
    id: int = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User email")
    full_name: Optional[str] = Field(None)
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True
