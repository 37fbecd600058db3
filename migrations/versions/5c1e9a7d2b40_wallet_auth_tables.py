"""wallet auth tables

Revision ID: 5c1e9a7d2b40
Revises:
Create Date: 2026-10-18 09:12:44.301552

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e9a7d2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users plus the challenge and session store tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("wallet_address", sa.String(length=56), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_wallet_address"), "users", ["wallet_address"], unique=True)

    op.create_table(
        "auth_challenge",
        sa.Column("wallet_address", sa.String(length=56), nullable=False),
        sa.Column("value", sa.String(length=128), nullable=False),
        sa.Column("issued_at_ms", sa.BigInteger(), nullable=False),
        sa.Column("expires_at_ms", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("wallet_address"),
        sa.UniqueConstraint("value"),
    )
    op.create_index(
        op.f("ix_auth_challenge_expires_at_ms"), "auth_challenge", ["expires_at_ms"], unique=False
    )

    op.create_table(
        "auth_session",
        sa.Column("wallet_address", sa.String(length=56), nullable=False),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("issued_at_ms", sa.BigInteger(), nullable=False),
        sa.Column("expires_at_ms", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("wallet_address"),
    )
    op.create_index(
        op.f("ix_auth_session_expires_at_ms"), "auth_session", ["expires_at_ms"], unique=False
    )


def downgrade() -> None:
    """Drop the wallet auth tables."""
    op.drop_index(op.f("ix_auth_session_expires_at_ms"), table_name="auth_session")
    op.drop_table("auth_session")
    op.drop_index(op.f("ix_auth_challenge_expires_at_ms"), table_name="auth_challenge")
    op.drop_table("auth_challenge")
    op.drop_index(op.f("ix_users_wallet_address"), table_name="users")
    op.drop_table("users")
