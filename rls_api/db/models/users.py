from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from rls_api.db.base import Base, IdentityPkMixin, TimestampMixin


class User(IdentityPkMixin, TimestampMixin, Base):
    """Account that owns todos. Not RLS-guarded: login resolves it before any identity exists."""
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hashed_password: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
