from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from rls_api.db.base import Base, IdentityPkMixin, OwnerMixin, TimestampMixin


class Todo(IdentityPkMixin, OwnerMixin, TimestampMixin, Base):
    """Todo item visible only to its owner through the todos RLS policies."""
    __tablename__ = "todos"
    __table_args__ = (
        CheckConstraint("length(title) > 0", name="title_not_empty"),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
