from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from rls_api.core.logging import user_id_var
from rls_api.core.security import get_token_user_id
from rls_api.db.models.users import User
from rls_api.db.session import get_async_session
from rls_api.repositories.users import UserRepository
from rls_api.services.scoped import ScopedRequestHandler

logger = logging.getLogger(__name__)

# OAuth2 bearer (used by docs); login endpoint path referenced here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


# PUBLIC_INTERFACE
async def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Resolve the caller from the Authorization bearer token.

    The lookup runs in its own short transaction so the session is free for
    the scoped transaction that follows.

    Raises:
        HTTPException: 401 for an invalid token or unknown user, 403 if inactive.
    """
    user_id = get_token_user_id(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    async with session.begin():
        user = await UserRepository(session).get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    user_id_var.set(str(user.id))
    request.state.user_id = str(user.id)
    return user


# PUBLIC_INTERFACE
async def get_current_user_id(user: User = Depends(get_current_user)) -> int:
    """Return the authenticated caller's id."""
    return user.id


# PUBLIC_INTERFACE
async def get_scoped_handler(
    user_id: int = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_async_session),
) -> ScopedRequestHandler:
    """
    Provide a ScopedRequestHandler bound to the caller for this request.

    Routes hand it exactly one operation; the handler owns the transaction
    and the `app.current_user_id` binding.
    """
    return ScopedRequestHandler(session, user_id)
