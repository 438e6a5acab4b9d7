"""Create users table mirrored from the identity provider.

Revision ID: 001
Revises: None
Create Date: 2026-01-06 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("external_uid", sa.String(), nullable=False, unique=True, index=True),
        sa.Column("email", sa.String(), nullable=True, index=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("phone_number", sa.String(), nullable=True, index=True),
        sa.Column("friends_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hashed_password", sa.String(), nullable=True),
        sa.Column("last_password_reset_at", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("friends_count >= 0", name="ck_users_friends_count_non_negative"),
    )


def downgrade() -> None:
    op.drop_table("users")
