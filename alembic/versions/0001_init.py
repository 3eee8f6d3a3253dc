"""init all tables

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("display_name", sa.String(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Auth magic links table
    op.create_table(
        "auth_magic_links",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_auth_magic_links_email", "auth_magic_links", ["email"])
    op.create_index("ix_auth_magic_links_token", "auth_magic_links", ["token"], unique=True)

    # Redmine credentials table (API key sealed with AES-256-GCM)
    op.create_table(
        "redmine_credentials",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("base_url", sa.String(), nullable=False),
        sa.Column("ciphertext", sa.Text(), nullable=False),
        sa.Column("nonce", sa.String(), nullable=False),
        sa.Column("auth_tag", sa.String(), nullable=False),
        sa.Column("redmine_user_id", sa.String(), nullable=False),
    )
    op.create_index(
        "ix_redmine_credentials_user_id", "redmine_credentials", ["user_id"], unique=True
    )


def downgrade() -> None:
    # Drop all tables in reverse order
    op.drop_table("redmine_credentials")
    op.drop_table("auth_magic_links")
    op.drop_table("users")
