"""
API route modules.

This package contains subrouters for:
- Auth: register, login, refresh, and current user
- Todos: CRUD over the caller's todos, each request one scoped transaction

Routers are included from rls_api.api.main (under the /api/v1 prefix).
"""
