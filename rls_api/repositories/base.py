from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import Executable
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """
    Base class for repositories providing common helpers.

    Note:
      Row visibility is enforced by Postgres RLS using the `app.current_user_id`
      setting, so repositories never filter by owner themselves. Use them inside
      a scoped transaction (see rls_api.services.scoped.ScopedRequestHandler).
      The transaction is owned by the caller: repositories never commit.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()
