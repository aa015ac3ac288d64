from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rls_api.core.deps import get_current_user
from rls_api.core.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    get_password_hash,
    get_token_user_id,
    verify_password,
)
from rls_api.db.models.users import User
from rls_api.db.session import get_async_session
from rls_api.repositories.users import UserRepository
from rls_api.schemas.auth import RefreshRequest, RegisterRequest, TokenPair, UserRead

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_pair(user_id: int) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    description="Create a new user account.",
)
async def register_user(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_async_session),
) -> UserRead:
    """Register a new user."""
    hashed = get_password_hash(payload.password)
    try:
        async with session.begin():
            user = await UserRepository(session).create_user(
                email=payload.email, full_name=payload.full_name, hashed_password=hashed
            )
    except IntegrityError:
        raise HTTPException(status_code=400, detail="User with this email already exists")
    return UserRead.model_validate(user)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=TokenPair,
    summary="Login",
    description="Authenticate using OAuth2 password form and receive access/refresh tokens.",
)
async def login_for_tokens(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_async_session),
) -> TokenPair:
    """Authenticate user and issue tokens."""
    async with session.begin():
        user = await UserRepository(session).get_user_by_email(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")
    return _token_pair(user.id)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh access token",
    description="Issue a new token pair from a valid refresh token.",
)
async def refresh_token(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_async_session),
) -> TokenPair:
    """Validate refresh token and issue a new token pair."""
    user_id = get_token_user_id(payload.refresh_token, token_type=REFRESH_TOKEN_TYPE)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    async with session.begin():
        user = await UserRepository(session).get_user_by_id(user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return _token_pair(user.id)


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=UserRead,
    summary="Read current user",
    description="Return the current authenticated user.",
)
async def read_current_user(user: User = Depends(get_current_user)) -> UserRead:
    """Return current user profile."""
    return UserRead.model_validate(user)
