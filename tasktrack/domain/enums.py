from __future__ import annotations

from enum import StrEnum


class TaskState(StrEnum):
    CREATED = "Created"
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"


class TaskPriority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Frequency(StrEnum):
    DAILY = "Daily"
    CUSTOM = "Custom"


class Weekday(StrEnum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @property
    def position(self) -> int:
        return list(Weekday).index(self)


class SlotType(StrEnum):
    BREAK = "Break"
    WORKING_HOURS = "WorkingHours"


class StatusFilter(StrEnum):
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"


# States that follow the slot set: Scheduled with at least one slot, Created without.
SLOT_DERIVED_STATES = frozenset({TaskState.CREATED, TaskState.SCHEDULED})

# States from which an elapsed deadline reads as Overdue.
OVERDUE_ELIGIBLE_STATES = frozenset(
    {TaskState.CREATED, TaskState.SCHEDULED, TaskState.IN_PROGRESS}
)
