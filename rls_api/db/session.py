from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import get_settings
from .policies import CURRENT_USER_SETTING

logger = logging.getLogger(__name__)

_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None


def _ensure_engine_initialized() -> None:
    """
    Lazily initialize the AsyncEngine and session maker.
    """
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is None:
        settings = get_settings()
        _ENGINE = create_async_engine(
            settings.async_database_url,
            echo=settings.SQL_ECHO,
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
    if _SESSION_MAKER is None:
        _SESSION_MAKER = async_sessionmaker(
            bind=_ENGINE, expire_on_commit=False, autoflush=False, autocommit=False
        )


# PUBLIC_INTERFACE
def get_engine() -> AsyncEngine:
    """Return the global AsyncEngine instance."""
    _ensure_engine_initialized()
    assert _ENGINE is not None
    return _ENGINE


# PUBLIC_INTERFACE
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Return the global session factory."""
    _ensure_engine_initialized()
    assert _SESSION_MAKER is not None
    return _SESSION_MAKER


# PUBLIC_INTERFACE
async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is not None:
        await _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None


# PUBLIC_INTERFACE
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession suitable for FastAPI dependency injection.

    The session is not in a transaction; callers open one with
    `session.begin()` or `user_transaction()`.
    """
    async with get_session_maker()() as session:
        yield session


# PUBLIC_INTERFACE
async def bind_current_user(session: AsyncSession, user_id: int) -> None:
    """
    Bind the caller identity for Row-Level Security in the current transaction.

    The third set_config argument (is_local) is true: the value disappears at
    COMMIT or ROLLBACK, so a pooled connection never carries it into the next
    request. Policies read it through
      current_setting('app.current_user_id', true)
    """
    await session.execute(
        text("SELECT set_config(:name, :user_id, true)"),
        {"name": CURRENT_USER_SETTING, "user_id": str(int(user_id))},
    )


# PUBLIC_INTERFACE
async def read_current_user_binding(session: AsyncSession) -> Optional[int]:
    """Return the identity bound in the current transaction, or None when unbound."""
    result = await session.execute(
        text("SELECT current_setting(:name, true)"),
        {"name": CURRENT_USER_SETTING},
    )
    value = result.scalar_one_or_none()
    if not value:
        return None
    return int(value)


# PUBLIC_INTERFACE
@asynccontextmanager
async def user_transaction(
    session: AsyncSession, user_id: int
) -> AsyncGenerator[AsyncSession, None]:
    """
    Open a transaction with the caller identity bound for RLS.

    Usage:
        async with user_transaction(session, user_id):
            # every statement here is filtered by the todos policies
            ...

    Commits when the block exits normally and rolls back on any exception
    (cancellation included); in both cases the binding ends with the
    transaction.
    """
    async with session.begin():
        await bind_current_user(session, user_id)
        logger.debug("Bound %s=%s for transaction", CURRENT_USER_SETTING, user_id)
        yield session
