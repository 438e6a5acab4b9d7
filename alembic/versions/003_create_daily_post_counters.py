"""Create daily_post_counters for the daily posting limit.

The unique (user_id, day_key) constraint is required for correctness:
concurrent first posts of the day rely on it to elect a single creator.

Revision ID: 003
Revises: 002
Create Date: 2026-01-08 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "daily_post_counters",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("day_key", sa.String(10), nullable=False, index=True),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("user_id", "day_key", name="uix_daily_post_counter_user_day"),
        sa.CheckConstraint("count >= 0", name="ck_daily_post_counters_count_non_negative"),
    )


def downgrade() -> None:
    op.drop_table("daily_post_counters")
