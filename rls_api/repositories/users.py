from __future__ import annotations

from typing import Optional

from sqlalchemy import insert, select

from rls_api.db.models.users import User
from .base import BaseRepository


class UserRepository(BaseRepository):
    """Repository for accounts. The users table is not RLS-guarded."""

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        return await self.scalar_one_or_none(stmt)

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        return await self.scalar_one_or_none(stmt)

    async def create_user(
        self,
        *,
        email: str,
        full_name: Optional[str],
        hashed_password: str,
        is_active: bool = True,
    ) -> User:
        stmt = (
            insert(User)
            .values(
                email=email,
                full_name=full_name,
                hashed_password=hashed_password,
                is_active=is_active,
            )
            .returning(User)
        )
        result = await self.scalars(stmt)
        return result.one()
