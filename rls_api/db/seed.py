"""
Database seeding for local demos.

Seeds:
- Two users (alice@example.com, bob@example.com), password "password123"
- A few todos per user, each inserted under that user's own identity binding,
  so the todos policies are exercised by the seed itself

Usage:
  python -m rls_api.db.run_migrations upgrade head
  python -m rls_api.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Tuple

from rls_api.core.logging import configure_logging
from rls_api.core.security import get_password_hash
from rls_api.db.session import get_async_session
from rls_api.repositories.todos import TodoRepository
from rls_api.repositories.users import UserRepository
from rls_api.schemas.todos import TodoCreate
from rls_api.services.scoped import ScopedRequestHandler

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

DEMO_USERS: List[Tuple[str, str, List[str]]] = [
    ("alice@example.com", "Alice Example", ["Write RLS policies", "Review pooled connection settings"]),
    ("bob@example.com", "Bob Example", ["Read the transaction docs"]),
]


# PUBLIC_INTERFACE
async def seed_all() -> Dict[str, int]:
    """
    Seed demo users and their todos. Idempotent: existing users and users
    that already have todos are left untouched.

    Returns:
      dict mapping email -> user id
    """
    ids: Dict[str, int] = {}
    async for session in get_async_session():
        for email, full_name, titles in DEMO_USERS:
            user_id = await _ensure_user(session, email, full_name)
            ids[email] = user_id
            await _seed_todos(session, user_id, titles)
    return ids


async def _ensure_user(session, email: str, full_name: str) -> int:
    async with session.begin():
        repo = UserRepository(session)
        user = await repo.get_user_by_email(email)
        if user is None:
            user = await repo.create_user(
                email=email,
                full_name=full_name,
                hashed_password=get_password_hash(DEMO_PASSWORD),
            )
            logger.info("Created demo user %s (id=%s)", email, user.id)
    return user.id


async def _seed_todos(session, user_id: int, titles: List[str]) -> None:
    # Counts only this user's rows; the policy hides everyone else's.
    existing = await ScopedRequestHandler(session, user_id).execute(
        lambda s: TodoRepository(s).count_todos()
    )
    if existing:
        return
    for title in titles:
        payload = TodoCreate(title=title)
        await ScopedRequestHandler(session, user_id).execute(
            lambda s, payload=payload: TodoRepository(s).create_todo(payload)
        )
    logger.info("Seeded %d todos for user %s", len(titles), user_id)


# PUBLIC_INTERFACE
def main() -> None:
    """Entrypoint to run the asynchronous seeding."""
    configure_logging()
    asyncio.run(seed_all())


if __name__ == "__main__":
    main()
