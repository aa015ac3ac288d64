from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from rls_api.core.deps import get_scoped_handler
from rls_api.db.base import BIGINT_MAX
from rls_api.repositories.todos import TodoRepository
from rls_api.schemas.todos import TodoCreate, TodoRead, TodoUpdate
from rls_api.services.scoped import ScopedRequestHandler

router = APIRouter(prefix="/todos", tags=["Todos"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoRead],
    summary="List todos",
    description="List the caller's todos ordered by id. Other users' rows are hidden by RLS.",
)
async def list_todos(
    handler: ScopedRequestHandler = Depends(get_scoped_handler),
    completed: bool | None = Query(None, description="Filter by completion flag"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[TodoRead]:
    async def operation(session):
        rows = await TodoRepository(session).list_todos(
            completed=completed, limit=limit, offset=offset
        )
        return [TodoRead.model_validate(x) for x in rows]

    return await handler.execute(operation)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create todo",
    description="Create a todo owned by the caller. Naming another owner is rejected by the insert policy.",
)
async def create_todo(
    payload: TodoCreate,
    handler: ScopedRequestHandler = Depends(get_scoped_handler),
) -> TodoRead:
    async def operation(session):
        row = await TodoRepository(session).create_todo(payload)
        return TodoRead.model_validate(row)

    return await handler.execute(operation)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoRead,
    summary="Get todo",
    description="Get one of the caller's todos by id.",
)
async def get_todo(
    todo_id: int = Path(..., ge=1, le=BIGINT_MAX),
    handler: ScopedRequestHandler = Depends(get_scoped_handler),
) -> TodoRead:
    async def operation(session):
        row = await TodoRepository(session).get_todo(todo_id)
        return TodoRead.model_validate(row) if row else None

    todo = await handler.execute(operation)
    if todo is None:
        raise HTTPException(status_code=404, detail="Todo not found")
    return todo


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoRead,
    summary="Update todo",
    description="Partially update one of the caller's todos.",
)
async def update_todo(
    payload: TodoUpdate,
    todo_id: int = Path(..., ge=1, le=BIGINT_MAX),
    handler: ScopedRequestHandler = Depends(get_scoped_handler),
) -> TodoRead:
    async def operation(session):
        row = await TodoRepository(session).update_todo(todo_id, payload)
        return TodoRead.model_validate(row) if row else None

    todo = await handler.execute(operation)
    if todo is None:
        raise HTTPException(status_code=404, detail="Todo not found")
    return todo


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete todo",
    description="Delete one of the caller's todos.",
)
async def delete_todo(
    todo_id: int = Path(..., ge=1, le=BIGINT_MAX),
    handler: ScopedRequestHandler = Depends(get_scoped_handler),
) -> Response:
    async def operation(session):
        return await TodoRepository(session).delete_todo(todo_id)

    if not await handler.execute(operation):
        raise HTTPException(status_code=404, detail="Todo not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
