from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .enums import Frequency, SlotType, TaskPriority, TaskState, Weekday
from .errors import ValidationFailed

MINUTES_PER_DAY = 24 * 60

MUTABLE_TASK_FIELDS = (
    "title",
    "description",
    "priority",
    "state",
    "deadline",
    "estimated_time",
    "reward_points",
)


@dataclass(frozen=True)
class RecurrenceSpec:
    frequency: Frequency
    interval: int
    specific_days: tuple[Weekday, ...] = ()


@dataclass(frozen=True)
class SlotSpec:
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class AvailabilitySpec:
    start_minutes: int
    end_minutes: int
    slot_type: SlotType
    recurrence: RecurrenceSpec | None = None


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    """Accept a datetime or an ISO-8601 string; aware values become naive UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationFailed(f"{field} is not an ISO-8601 timestamp", field=field) from exc
    if not isinstance(value, datetime):
        raise ValidationFailed(f"{field} must be a timestamp", field=field)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _optional_non_negative_int(value: Any, field: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailed(f"{field} must be an integer", field=field)
    if value < 0:
        raise ValidationFailed(f"{field} must not be negative", field=field)
    return value


def _enum_value(enum_cls, value: Any, field: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationFailed(f"{field} must be one of: {allowed}", field=field) from exc


def clean_task_fields(data: dict, *, creating: bool) -> dict:
    # On update only keys present in data are returned.
    cleaned: dict[str, Any] = {}
    for key in MUTABLE_TASK_FIELDS:
        if key not in data:
            continue
        if creating and key == "state":
            # New tasks always start at Created; slots move them to Scheduled.
            continue
        value = data[key]
        if key == "title":
            if not isinstance(value, str) or not value.strip():
                raise ValidationFailed("title is required", field="title")
            value = value.strip()
        elif key == "description":
            if value is not None and not isinstance(value, str):
                raise ValidationFailed("description must be text", field="description")
        elif key == "priority":
            value = _enum_value(TaskPriority, value, "priority").value
        elif key == "state":
            value = _enum_value(TaskState, value, "state").value
        elif key == "deadline":
            value = parse_datetime(value, "deadline")
        else:
            value = _optional_non_negative_int(value, key)
        cleaned[key] = value

    if creating:
        if "title" not in cleaned:
            raise ValidationFailed("title is required", field="title")
        cleaned.setdefault("priority", TaskPriority.MEDIUM.value)
        cleaned["state"] = TaskState.CREATED.value
    return cleaned


def parse_recurrence(payload: Any) -> RecurrenceSpec:
    if not isinstance(payload, dict):
        raise ValidationFailed("recurrence must be an object", field="recurrence")
    frequency = _enum_value(Frequency, payload.get("frequency"), "recurrence.frequency")

    interval = payload.get("interval")
    if interval is None:
        interval = 1
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        raise ValidationFailed("recurrence.interval must be a positive integer", field="recurrence.interval")

    raw_days = payload.get("specific_days") or ()
    if isinstance(raw_days, str):
        raw_days = [raw_days]
    days: list[Weekday] = []
    for raw in raw_days:
        day = _enum_value(Weekday, raw, "recurrence.specific_days")
        if day not in days:
            days.append(day)
    days.sort(key=lambda day: day.position)

    if frequency == Frequency.CUSTOM and not days:
        raise ValidationFailed(
            "recurrence.specific_days is required for Custom frequency",
            field="recurrence.specific_days",
        )
    return RecurrenceSpec(frequency=frequency, interval=interval, specific_days=tuple(days))


def parse_slots(payload: Any) -> list[SlotSpec]:
    if not isinstance(payload, (list, tuple)):
        raise ValidationFailed("time_slots must be a list", field="time_slots")
    slots = []
    for index, raw in enumerate(payload):
        field = f"time_slots[{index}]"
        if not isinstance(raw, dict):
            raise ValidationFailed(f"{field} must be an object", field=field)
        start = parse_datetime(raw.get("start_time"), f"{field}.start_time")
        end = parse_datetime(raw.get("end_time"), f"{field}.end_time")
        if start is None or end is None:
            raise ValidationFailed(f"{field} needs start_time and end_time", field=field)
        if end <= start:
            raise ValidationFailed(f"{field} must end after it starts", field=field)
        slots.append(SlotSpec(start_time=start, end_time=end))
    return slots


def _minutes(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailed(f"{field} must be an integer", field=field)
    if not 0 <= value <= MINUTES_PER_DAY:
        raise ValidationFailed(f"{field} must be within 0..{MINUTES_PER_DAY}", field=field)
    return value


def parse_availability(payload: Any) -> list[AvailabilitySpec]:
    if not isinstance(payload, (list, tuple)):
        raise ValidationFailed("time_slots must be a list", field="time_slots")
    slots = []
    for index, raw in enumerate(payload):
        field = f"time_slots[{index}]"
        if not isinstance(raw, dict):
            raise ValidationFailed(f"{field} must be an object", field=field)
        start = _minutes(raw.get("start_minutes"), f"{field}.start_minutes")
        end = _minutes(raw.get("end_minutes"), f"{field}.end_minutes")
        if end <= start:
            raise ValidationFailed(f"{field} must end after it starts", field=field)
        slot_type = _enum_value(SlotType, raw.get("slot_type"), f"{field}.slot_type")
        recurrence = None
        if raw.get("recurrence") is not None:
            recurrence = parse_recurrence(raw["recurrence"])
        slots.append(
            AvailabilitySpec(
                start_minutes=start,
                end_minutes=end,
                slot_type=slot_type,
                recurrence=recurrence,
            )
        )
    return slots


def parse_schedule(payload: Iterable[Any]) -> list[tuple[int, list[SlotSpec]]]:
    if not isinstance(payload, (list, tuple)):
        raise ValidationFailed("tasks must be a list", field="tasks")
    batch = []
    for index, raw in enumerate(payload):
        if not isinstance(raw, dict):
            raise ValidationFailed(f"tasks[{index}] must be an object", field=f"tasks[{index}]")
        task_id = raw.get("id")
        if isinstance(task_id, bool) or not isinstance(task_id, int):
            raise ValidationFailed(f"tasks[{index}].id must be an integer", field=f"tasks[{index}].id")
        batch.append((task_id, parse_slots(raw.get("time_slots") or [])))
    return batch
