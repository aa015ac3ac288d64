"""
Row-Level Security against a real PostgreSQL.

Set TEST_POSTGRES_URL to a database the tests may drop and recreate tables in.
The role must be neither superuser nor BYPASSRLS, otherwise PostgreSQL skips
the policies and these tests are skipped.
"""

import os

import pytest
from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from rls_api.core.errors import OperationFailedError
from rls_api.db.base import Base
from rls_api.db.config import Settings
from rls_api.db.models import Todo
from rls_api.db.policies import OWNED_TABLES, enable_owner_policies
from rls_api.db.session import read_current_user_binding, user_transaction
from rls_api.repositories.todos import TodoRepository
from rls_api.repositories.users import UserRepository
from rls_api.schemas.todos import TodoCreate, TodoUpdate
from rls_api.services.scoped import ScopedRequestHandler, ScopeState

TEST_POSTGRES_URL = os.getenv("TEST_POSTGRES_URL")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not TEST_POSTGRES_URL, reason="TEST_POSTGRES_URL not set"),
]


@pytest.fixture
async def engine():
    url = Settings(_env_file=None, POSTGRES_URL=TEST_POSTGRES_URL).async_database_url
    # A single pooled connection makes every transaction reuse the same backend.
    eng = create_async_engine(url, pool_size=1, max_overflow=0)
    async with eng.connect() as conn:
        row = (
            await conn.execute(
                text("SELECT rolsuper, rolbypassrls FROM pg_roles WHERE rolname = current_user")
            )
        ).one()
    if row.rolsuper or row.rolbypassrls:
        await eng.dispose()
        pytest.skip("TEST_POSTGRES_URL role bypasses row-level security")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
        for table in OWNED_TABLES:
            for statement in enable_owner_policies(table):
                await conn.execute(text(statement))
    try:
        yield eng
    finally:
        async with eng.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def users(session_maker):
    """Two users with two todos each; returns (alice_id, bob_id)."""
    ids = []
    async with session_maker() as session:
        async with session.begin():
            repo = UserRepository(session)
            for name in ("alice", "bob"):
                user = await repo.create_user(
                    email=f"{name}@example.com", full_name=name.title(), hashed_password="x"
                )
                ids.append(user.id)
        for user_id in ids:
            for n in (1, 2):
                async with user_transaction(session, user_id):
                    await TodoRepository(session).create_todo(TodoCreate(title=f"todo {n} of {user_id}"))
    return tuple(ids)


async def _run(session_maker, user_id, operation):
    async with session_maker() as session:
        handler = ScopedRequestHandler(session, user_id)
        return await handler.execute(operation)


async def test_caller_lists_only_own_rows(session_maker, users):
    alice, bob = users

    rows = await _run(session_maker, alice, lambda s: TodoRepository(s).list_todos())

    assert len(rows) == 2
    assert {r.user_id for r in rows} == {alice}


async def test_insert_defaults_owner_to_bound_identity(session_maker, users):
    alice, _ = users

    row = await _run(session_maker, alice, lambda s: TodoRepository(s).create_todo(TodoCreate(title="mine")))

    assert row.user_id == alice


async def test_foreign_owner_insert_is_rejected_and_nothing_persists(session_maker, users):
    alice, bob = users

    with pytest.raises(OperationFailedError) as info:
        await _run(
            session_maker,
            alice,
            lambda s: TodoRepository(s).create_todo(TodoCreate(title="for bob", user_id=bob)),
        )

    assert isinstance(info.value.__cause__, DBAPIError)
    count = await _run(session_maker, bob, lambda s: TodoRepository(s).count_todos())
    assert count == 2


async def test_foreign_rows_cannot_be_read_updated_or_deleted(session_maker, users):
    alice, bob = users
    bob_rows = await _run(session_maker, bob, lambda s: TodoRepository(s).list_todos())
    target = bob_rows[0].id

    assert await _run(session_maker, alice, lambda s: TodoRepository(s).get_todo(target)) is None
    updated = await _run(
        session_maker, alice, lambda s: TodoRepository(s).update_todo(target, TodoUpdate(title="mine now"))
    )
    assert updated is None
    assert await _run(session_maker, alice, lambda s: TodoRepository(s).delete_todo(target)) is False

    still = await _run(session_maker, bob, lambda s: TodoRepository(s).get_todo(target))
    assert still.title == bob_rows[0].title


async def test_failed_operation_leaves_no_mutation(session_maker, users):
    alice, _ = users

    async def create_then_fail(session):
        await TodoRepository(session).create_todo(TodoCreate(title="half done"))
        await session.execute(text("SELECT 1 / 0"))

    with pytest.raises(OperationFailedError):
        await _run(session_maker, alice, create_then_fail)

    rows = await _run(session_maker, alice, lambda s: TodoRepository(s).list_todos())
    assert "half done" not in {r.title for r in rows}


async def test_binding_does_not_survive_on_reused_connection(session_maker, users):
    alice, bob = users
    seen = {}

    def probe(key):
        async def operation(session):
            pid = (await session.execute(text("SELECT pg_backend_pid()"))).scalar_one()
            seen[key] = (pid, await read_current_user_binding(session))
        return operation

    await _run(session_maker, alice, probe("alice"))

    async with session_maker() as session:
        async with session.begin():
            pid = (await session.execute(text("SELECT pg_backend_pid()"))).scalar_one()
            unbound = await read_current_user_binding(session)
            visible = (await session.scalars(select(Todo))).all()

    await _run(session_maker, bob, probe("bob"))

    assert seen["alice"] == (pid, alice)
    assert seen["bob"] == (pid, bob)
    assert unbound is None
    assert visible == []


async def test_binding_is_cleared_by_rollback(session_maker, users):
    alice, _ = users

    async def fail(session):
        raise RuntimeError("boom")

    async with session_maker() as session:
        handler = ScopedRequestHandler(session, alice)
        with pytest.raises(OperationFailedError):
            await handler.execute(fail)
        assert handler.state is ScopeState.ROLLED_BACK

        async with session.begin():
            assert await read_current_user_binding(session) is None
