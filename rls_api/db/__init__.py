"""
Database package initializer exposing key public interfaces for configuration,
engine/session management, and the transaction-scoped identity binding.
"""

from .base import Base
from .config import get_settings, Settings
from .session import (
    bind_current_user,
    dispose_engine,
    get_async_session,
    get_engine,
    get_session_maker,
    read_current_user_binding,
    user_transaction,
)

# Import models to ensure they are registered with SQLAlchemy metadata
# when the db package is imported.
from . import models as models  # noqa: F401

__all__ = [
    "Base",
    "Settings",
    "get_settings",
    "get_engine",
    "get_session_maker",
    "dispose_engine",
    "get_async_session",
    "bind_current_user",
    "read_current_user_binding",
    "user_transaction",
    "models",
]
