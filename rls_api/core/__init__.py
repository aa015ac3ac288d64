"""
Core application utilities for settings and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Logging configuration with request context
- Token creation/validation and password hashing
- Dependency helpers (caller identity, scoped request handler)
"""
