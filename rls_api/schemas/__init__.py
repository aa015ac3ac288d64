"""
Public Pydantic schemas used by FastAPI routes, repositories, and tests.

Schemas are grouped by area (auth, todos) plus common models such as the
error envelope and standard message responses.
"""

from .common import MessageResponse  # noqa: F401
