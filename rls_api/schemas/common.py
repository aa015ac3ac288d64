from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Standard message response."""
    message: str = Field(..., description="Human readable message")


class IdentityEcho(BaseModel):
    """Identity as seen by the database inside a scoped transaction."""
    user_id: int = Field(..., description="Caller user ID from the access token")
    bound_user_id: Optional[int] = Field(
        None, description="Value of app.current_user_id read back inside the transaction"
    )


class ErrorInfo(BaseModel):
    """Structured error description."""
    type: str = Field(..., description="Machine-readable error type code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(default=None, description="Optional error details (e.g., validation issues)")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """Standardized API error envelope returned by exception handlers."""
    status: int = Field(..., description="HTTP status code")
    error: ErrorInfo = Field(..., description="Error details")
    correlation_id: Optional[str] = Field(default=None, description="Request correlation ID")
    user_id: Optional[str] = Field(default=None, description="Caller user ID (if authenticated)")
    path: Optional[str] = Field(default=None, description="Request path")
    method: Optional[str] = Field(default=None, description="HTTP method")
    timestamp: datetime = Field(..., description="Error timestamp (UTC)")
