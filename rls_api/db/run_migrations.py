"""
Programmatic Alembic migration runner.

Runs migrations without an alembic.ini by pointing Alembic at the migrations
directory inside this package.

Usage examples:
    python -m rls_api.db.run_migrations upgrade head
    python -m rls_api.db.run_migrations downgrade base
    python -m rls_api.db.run_migrations current
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List

from alembic import command
from alembic.config import Config

from rls_api.db.config import get_settings

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# command name -> (alembic function, default positional arguments)
_COMMANDS: Dict[str, tuple[Callable[..., None], List[str]]] = {
    "upgrade": (command.upgrade, ["head"]),
    "downgrade": (command.downgrade, ["-1"]),
    "history": (command.history, []),
    "current": (command.current, []),
    "heads": (command.heads, []),
}


# PUBLIC_INTERFACE
def build_config() -> Config:
    """Return an Alembic Config bound to this package's migrations and database."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # Offline mode reads this URL; env.py uses the async URL when online.
    # ConfigParser interpolates "%", which may appear in URL-encoded passwords.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url.replace("%", "%%"))
    return cfg


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run an Alembic command with programmatic configuration."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cmd, other = args[0], args[1:]
    if cmd not in _COMMANDS:
        print(f"Unsupported Alembic command: {cmd}")
        sys.exit(2)

    func, defaults = _COMMANDS[cmd]
    func(build_config(), *(other or defaults))


if __name__ == "__main__":
    main()
