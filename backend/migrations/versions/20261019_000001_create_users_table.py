"""Create users table and user_role enum."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum("admin", "user", name="user_role", create_constraint=True)


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if inspector.has_table("users"):
        return

    id_default = sa.text("gen_random_uuid()") if bind.dialect.name == "postgresql" else None

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, server_default=id_default),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("verification_token", sa.String(length=255), nullable=True, unique=True),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="user"),
    )
    op.create_index("idx_users_created_at", "users", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_table("users")
    user_role.drop(op.get_bind(), checkfirst=True)
