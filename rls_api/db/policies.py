"""
Row-Level Security DDL for user-owned tables.

The policies read the caller identity from the transaction-local setting
`app.current_user_id`. Once a local setting ends PostgreSQL reverts a custom
setting to '' rather than NULL, hence the NULLIF: an unbound transaction sees
no rows instead of failing on the integer cast.

Both the Alembic migration and the integration tests build their DDL here.
"""

from __future__ import annotations

from typing import List

CURRENT_USER_SETTING = "app.current_user_id"

CURRENT_USER_EXPR = f"NULLIF(current_setting('{CURRENT_USER_SETTING}', true), '')::bigint"

# Tables guarded by an owner column named user_id.
OWNED_TABLES = ("todos",)


# PUBLIC_INTERFACE
def enable_owner_policies(table: str, owner_column: str = "user_id") -> List[str]:
    """
    Return the statements enabling per-command owner policies on a table.

    FORCE makes the table owner subject to the policies too, so the service
    may connect with the same role that ran the migrations.
    """
    match = f"{owner_column} = {CURRENT_USER_EXPR}"
    return [
        f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;",
        f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY;",
        f"CREATE POLICY {table}_select_own ON {table} FOR SELECT USING ({match});",
        f"CREATE POLICY {table}_insert_own ON {table} FOR INSERT WITH CHECK ({match});",
        f"CREATE POLICY {table}_update_own ON {table} FOR UPDATE USING ({match}) WITH CHECK ({match});",
        f"CREATE POLICY {table}_delete_own ON {table} FOR DELETE USING ({match});",
    ]


# PUBLIC_INTERFACE
def disable_owner_policies(table: str) -> List[str]:
    """Return the statements reverting enable_owner_policies()."""
    statements = [
        f"DROP POLICY IF EXISTS {table}_{command}_own ON {table};"
        for command in ("select", "insert", "update", "delete")
    ]
    statements.append(f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY;")
    statements.append(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY;")
    return statements
