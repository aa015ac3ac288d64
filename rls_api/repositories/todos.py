from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, insert, select, update

from rls_api.db.models.todos import Todo
from rls_api.schemas.todos import TodoCreate, TodoUpdate
from .base import BaseRepository


class TodoRepository(BaseRepository):
    """
    Repository for todos.

    No statement here mentions the owner: the todos policies restrict every
    SELECT, INSERT, UPDATE and DELETE to the identity bound in the transaction.
    """

    async def list_todos(
        self, *, completed: Optional[bool] = None, limit: int = 100, offset: int = 0
    ) -> List[Todo]:
        stmt = select(Todo)
        if completed is not None:
            stmt = stmt.where(Todo.completed == completed)
        stmt = stmt.order_by(Todo.id.asc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_todo(self, todo_id: int) -> Optional[Todo]:
        stmt = select(Todo).where(Todo.id == todo_id)
        return await self.scalar_one_or_none(stmt)

    async def create_todo(self, payload: TodoCreate) -> Todo:
        values: Dict[str, Any] = {
            "title": payload.title,
            "description": payload.description,
            "completed": payload.completed,
        }
        # Left unset, the owner defaults to the bound identity. An explicit
        # owner is passed through so the insert policy can reject a mismatch.
        if payload.user_id is not None:
            values["user_id"] = payload.user_id
        stmt = insert(Todo).values(**values).returning(Todo)
        res = await self.scalars(stmt)
        return res.one()

    async def update_todo(self, todo_id: int, payload: TodoUpdate) -> Optional[Todo]:
        values = payload.model_dump(exclude_unset=True)
        if not values:
            return await self.get_todo(todo_id)
        stmt = (
            update(Todo)
            .where(Todo.id == todo_id)
            .values(**values, updated_at=func.now())
            .returning(Todo)
            .execution_options(synchronize_session=False)
        )
        return await self.scalar_one_or_none(stmt)

    async def delete_todo(self, todo_id: int) -> bool:
        stmt = delete(Todo).where(Todo.id == todo_id).returning(Todo.id)
        deleted = await self.scalar_one_or_none(stmt)
        return deleted is not None

    async def count_todos(self) -> int:
        stmt = select(func.count(Todo.id))
        result = await self.execute(stmt)
        return int(result.scalar_one())
