from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_create_auth_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("admins"):
        op.create_table(
            "admins",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("password_hash", sa.String(), nullable=False),
            sa.Column("role", sa.String(), nullable=False, server_default="admin"),
            sa.Column("slot", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("slot", name="uq_admins_slot"),
        )
        op.create_index("ix_admins_email", "admins", ["email"], unique=True)

    if not inspector.has_table("login_attempts"):
        op.create_table(
            "login_attempts",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("success", sa.Boolean(), nullable=False),
            sa.Column("attempted_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_login_attempts_id", "login_attempts", ["id"], unique=False)
        op.create_index(
            "ix_login_attempts_email_attempted_at",
            "login_attempts",
            ["email", "attempted_at"],
            unique=False,
        )

    if not inspector.has_table("password_reset_tokens"):
        op.create_table(
            "password_reset_tokens",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column(
                "admin_id",
                sa.String(length=36),
                sa.ForeignKey("admins.id", ondelete="CASCADE", name="fk_password_reset_admin"),
                nullable=False,
            ),
            sa.Column("token", sa.String(), nullable=False),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
            sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index(
            "ix_password_reset_tokens_token",
            "password_reset_tokens",
            ["token"],
            unique=True,
        )
        op.create_index(
            "ix_password_reset_tokens_admin_id",
            "password_reset_tokens",
            ["admin_id"],
            unique=False,
        )


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table("password_reset_tokens"):
        op.drop_index("ix_password_reset_tokens_admin_id", table_name="password_reset_tokens")
        op.drop_index("ix_password_reset_tokens_token", table_name="password_reset_tokens")
        op.drop_table("password_reset_tokens")

    if inspector.has_table("login_attempts"):
        op.drop_index("ix_login_attempts_email_attempted_at", table_name="login_attempts")
        op.drop_index("ix_login_attempts_id", table_name="login_attempts")
        op.drop_table("login_attempts")

    if inspector.has_table("admins"):
        op.drop_index("ix_admins_email", table_name="admins")
        op.drop_table("admins")
