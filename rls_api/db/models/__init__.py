"""
ORM models for users and their todos.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .users import User  # noqa: F401
from .todos import Todo  # noqa: F401
