from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from rls_api.db.base import BIGINT_MAX


class TodoRead(BaseModel):
    """Todo read model."""
    id: int = Field(..., description="Todo ID assigned by the database")
    user_id: int = Field(..., description="Owner user ID")
    title: str = Field(..., description="Title")
    description: Optional[str] = Field(None)
    completed: bool = Field(..., description="Completion flag")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")

    class Config:
        from_attributes = True


class TodoCreate(BaseModel):
    """Create todo payload."""
    title: str = Field(..., min_length=1, max_length=500, description="Title")
    description: Optional[str] = Field(None)
    completed: bool = Field(False)
    user_id: Optional[int] = Field(
        None,
        ge=1,
        le=BIGINT_MAX,
        description=(
            "Owner user ID. Defaults to the caller; any other value is rejected "
            "by the database policy."
        ),
    )


class TodoUpdate(BaseModel):
    """Partial update payload; only provided fields change."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None)
    completed: Optional[bool] = Field(None)

    @field_validator("title", "completed")
    @classmethod
    def _reject_explicit_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v
