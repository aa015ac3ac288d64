from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Identity, MetaData, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .policies import CURRENT_USER_EXPR


# Standardized naming convention for alembic-friendly constraints/indexes.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base class with metadata naming conventions."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# Upper bound of the bigint identity columns.
BIGINT_MAX = 2**63 - 1


class IdentityPkMixin:
    """Mixin that provides a database-assigned integer primary key."""
    id: Mapped[int] = mapped_column(
        BigInteger, Identity(always=False), primary_key=True
    )


class TimestampMixin:
    """Mixin that provides created_at and updated_at timestamp columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )


class OwnerMixin:
    """
    Mixin for rows owned by a user.

    The owner defaults to the identity bound in the current transaction, so
    inserts made inside a scoped transaction need not name it.
    """
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        server_default=text(CURRENT_USER_EXPR),
    )
