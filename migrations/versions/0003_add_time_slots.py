"""add time slots for tasks and standing availability"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0003_add_time_slots"
down_revision = "0002_add_recurrence_and_habits"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "time_slots",
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
            nullable=True,
        ),
        sa.Column(
            "recurrence_id",
            sa.Integer(),
            sa.ForeignKey("recurrence_patterns.id"),
            nullable=True,
        ),
        sa.Column("start_time", sa.DateTime(), nullable=True),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("start_minutes", sa.Integer(), nullable=True),
        sa.Column("end_minutes", sa.Integer(), nullable=True),
        sa.Column("slot_type", sa.String(length=20), nullable=True),
        sa.CheckConstraint(
            "start_time IS NULL OR end_time IS NULL OR end_time > start_time",
            name="ck_time_slots_instant_order",
        ),
        sa.CheckConstraint(
            "start_minutes IS NULL OR end_minutes IS NULL OR end_minutes > start_minutes",
            name="ck_time_slots_minute_order",
        ),
    )
    op.create_index("ix_time_slots_user_id", "time_slots", ["user_id"], unique=False)
    op.create_index("ix_time_slots_task_id", "time_slots", ["task_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_time_slots_task_id", table_name="time_slots")
    op.drop_index("ix_time_slots_user_id", table_name="time_slots")
    op.drop_table("time_slots")
