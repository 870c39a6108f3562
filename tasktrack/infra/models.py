from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserModel(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("reward_points >= 0", name="ck_users_reward_points_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    username = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    reward_points = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_task_id = Column(
        Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(20), nullable=False, default="Medium")
    state = Column(String(20), nullable=False, default="Created", index=True)
    deadline = Column(DateTime, nullable=True)
    estimated_time = Column(Integer, nullable=True)
    reward_points = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class RecurrencePatternModel(Base):
    __tablename__ = "recurrence_patterns"

    id = Column(Integer, primary_key=True)
    frequency = Column(String(20), nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    # Comma-separated weekday names, e.g. "Monday,Thursday".
    specific_days = Column(Text, nullable=False, default="")


class HabitModel(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    recurrence_id = Column(Integer, ForeignKey("recurrence_patterns.id"), nullable=False)
    streak = Column(Integer, nullable=False, default=0)
    last_completed = Column(DateTime, nullable=True)


class TimeSlotModel(Base):
    __tablename__ = "time_slots"
    __table_args__ = (
        CheckConstraint(
            "start_time IS NULL OR end_time IS NULL OR end_time > start_time",
            name="ck_time_slots_instant_order",
        ),
        CheckConstraint(
            "start_minutes IS NULL OR end_minutes IS NULL OR end_minutes > start_minutes",
            name="ck_time_slots_minute_order",
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL for standing availability slots owned by the user alone.
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)
    recurrence_id = Column(Integer, ForeignKey("recurrence_patterns.id"), nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    start_minutes = Column(Integer, nullable=True)
    end_minutes = Column(Integer, nullable=True)
    slot_type = Column(String(20), nullable=True)


class TaskCompletionModel(Base):
    __tablename__ = "task_completions"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    completed_at = Column(DateTime, nullable=False, default=utcnow)
