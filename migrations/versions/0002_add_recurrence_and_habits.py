"""add recurrence patterns and habits"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_add_recurrence_and_habits"
down_revision = "0001_create_users_and_tasks"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "recurrence_patterns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("frequency", sa.String(length=20), nullable=False),
        sa.Column("interval", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("specific_days", sa.Text(), nullable=False, server_default=""),
    )
    op.create_table(
        "habits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "recurrence_id",
            sa.Integer(),
            sa.ForeignKey("recurrence_patterns.id"),
            nullable=False,
        ),
        sa.Column("streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_completed", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_habits_user_id", table_name="habits")
    op.drop_table("habits")
    op.drop_table("recurrence_patterns")
