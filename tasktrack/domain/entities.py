from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import (
    OVERDUE_ELIGIBLE_STATES,
    Frequency,
    SlotType,
    TaskPriority,
    TaskState,
    Weekday,
)


@dataclass(frozen=True)
class RecurrenceEntity:
    id: int
    frequency: Frequency
    interval: int
    specific_days: tuple[Weekday, ...] = ()


@dataclass(frozen=True)
class HabitEntity:
    id: int
    user_id: int
    task_id: int
    recurrence_id: int
    streak: int
    last_completed: Optional[datetime]


@dataclass(frozen=True)
class TimeSlotEntity:
    id: int
    user_id: int
    task_id: int | None
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    start_minutes: int | None = None
    end_minutes: int | None = None
    slot_type: SlotType | None = None
    recurrence: RecurrenceEntity | None = None


@dataclass(frozen=True)
class TaskCompletionEntity:
    id: int
    task_id: int
    completed_at: datetime


@dataclass(frozen=True)
class TaskEntity:
    id: int
    user_id: int
    parent_task_id: int | None
    title: str
    description: str | None
    priority: TaskPriority
    state: TaskState
    deadline: Optional[datetime]
    estimated_time: int | None
    reward_points: int | None
    created_at: datetime
    updated_at: datetime
    time_slots: tuple[TimeSlotEntity, ...] = field(default_factory=tuple)
    subtask_ids: tuple[int, ...] = field(default_factory=tuple)
    recurrence: RecurrenceEntity | None = None
    habit: HabitEntity | None = None

    @property
    def is_habit(self) -> bool:
        return self.habit is not None

    def effective_state(self, now: datetime) -> TaskState:
        """State as seen at ``now``; Overdue is derived here and never stored."""
        if (
            self.deadline is not None
            and self.state in OVERDUE_ELIGIBLE_STATES
            and self.deadline < now
        ):
            return TaskState.OVERDUE
        return self.state
