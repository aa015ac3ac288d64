"""Users and todos with Row-Level Security.

- users (unguarded; needed by login before any identity exists)
- todos (owner-guarded by per-command policies on app.current_user_id)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from rls_api.db.policies import (
    CURRENT_USER_EXPR,
    OWNED_TABLES,
    disable_owner_policies,
    enable_owner_policies,
)

# revision identifiers, used by Alembic.
revision: str = "3c1d9e7a5b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("hashed_password", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "todos",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False, server_default=sa.text(CURRENT_USER_EXPR)),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_todos"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_todos_user_id_users", ondelete="CASCADE"),
        sa.CheckConstraint("length(title) > 0", name="ck_todos_title_not_empty"),
    )
    op.create_index("ix_todos_user_id", "todos", ["user_id"])

    for table in OWNED_TABLES:
        for statement in enable_owner_policies(table):
            op.execute(statement)


def downgrade() -> None:
    for table in OWNED_TABLES:
        for statement in disable_owner_policies(table):
            op.execute(statement)

    op.drop_index("ix_todos_user_id", table_name="todos")
    op.drop_table("todos")
    op.drop_table("users")
