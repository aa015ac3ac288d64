from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from rls_api.core.settings import get_app_settings
from rls_api.db.base import BIGINT_MAX

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# PUBLIC_INTERFACE
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password using bcrypt."""
    return _pwd_context.verify(plain_password, hashed_password)


# PUBLIC_INTERFACE
def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return _pwd_context.hash(password)


def _create_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta],
    token_type: str,
) -> str:
    settings = get_app_settings()
    to_encode = data.copy()
    now = datetime.now(tz=timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire, "iat": now, "type": token_type})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# PUBLIC_INTERFACE
def create_access_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    """Create a signed access token whose subject is the user id."""
    settings = get_app_settings()
    exp = timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _create_token({"sub": str(user_id)}, exp, token_type=ACCESS_TOKEN_TYPE)


# PUBLIC_INTERFACE
def create_refresh_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    """Create a signed refresh token whose subject is the user id."""
    settings = get_app_settings()
    exp = timedelta(minutes=expires_minutes or settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    return _create_token({"sub": str(user_id)}, exp, token_type=REFRESH_TOKEN_TYPE)


# PUBLIC_INTERFACE
def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT; raises JWTError if invalid/expired."""
    settings = get_app_settings()
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


# PUBLIC_INTERFACE
def get_token_user_id(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> Optional[int]:
    """
    Return the user id carried by a token of the given type.

    None when the token is invalid, expired, of another type, or its
    subject is not an id that fits the users table.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    if not 1 <= user_id <= BIGINT_MAX:
        return None
    return user_id
