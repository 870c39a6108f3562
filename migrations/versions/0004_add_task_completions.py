"""add task completion history"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0004_add_task_completions"
down_revision = "0003_add_time_slots"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_completions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("completed_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_task_completions_task_id", "task_completions", ["task_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_task_completions_task_id", table_name="task_completions")
    op.drop_table("task_completions")
