from __future__ import annotations

from datetime import datetime

import pytest

from tasktrack.domain.enums import Frequency, Weekday
from tasktrack.domain.errors import ValidationFailed
from tasktrack.domain.validation import (
    clean_task_fields,
    parse_datetime,
    parse_recurrence,
    parse_schedule,
    parse_slots,
)


def test_update_fields_only_include_present_keys() -> None:
    assert clean_task_fields({"title": " Renamed "}, creating=False) == {"title": "Renamed"}


def test_create_fields_fill_defaults() -> None:
    cleaned = clean_task_fields({"title": "New"}, creating=True)

    assert cleaned["priority"] == "Medium"
    assert cleaned["state"] == "Created"


def test_create_fields_ignore_requested_state() -> None:
    cleaned = clean_task_fields({"title": "New", "state": "Completed"}, creating=True)

    assert cleaned["state"] == "Created"


def test_update_rejects_unknown_state() -> None:
    with pytest.raises(ValidationFailed) as excinfo:
        clean_task_fields({"state": "Done"}, creating=False)

    assert excinfo.value.field == "state"


@pytest.mark.parametrize(
    ("data", "field"),
    [
        ({"title": "x", "priority": "Urgent"}, "priority"),
        ({"title": "x", "reward_points": -5}, "reward_points"),
        ({"title": "x", "estimated_time": "soon"}, "estimated_time"),
        ({"title": "x", "deadline": "next week"}, "deadline"),
        ({"description": "no title"}, "title"),
    ],
)
def test_bad_task_fields_name_the_field(data: dict, field: str) -> None:
    with pytest.raises(ValidationFailed) as excinfo:
        clean_task_fields(data, creating=True)

    assert excinfo.value.field == field


def test_aware_timestamps_become_naive_utc() -> None:
    parsed = parse_datetime("2026-02-02T12:00:00+02:00", "deadline")

    assert parsed == datetime(2026, 2, 2, 10, 0)


def test_custom_recurrence_needs_days() -> None:
    with pytest.raises(ValidationFailed):
        parse_recurrence({"frequency": "Custom"})


def test_recurrence_rejects_zero_interval() -> None:
    with pytest.raises(ValidationFailed):
        parse_recurrence({"frequency": "Daily", "interval": 0})


def test_recurrence_days_are_unique_and_ordered() -> None:
    spec = parse_recurrence(
        {"frequency": "Custom", "interval": 1, "specific_days": ["Sunday", "Monday", "Sunday"]}
    )

    assert spec.frequency == Frequency.CUSTOM
    assert spec.specific_days == (Weekday.MONDAY, Weekday.SUNDAY)


def test_slot_must_end_after_start() -> None:
    with pytest.raises(ValidationFailed) as excinfo:
        parse_slots([{"start_time": "2026-02-02T10:00", "end_time": "2026-02-02T10:00"}])

    assert excinfo.value.field == "time_slots[0]"


def test_schedule_requires_integer_ids() -> None:
    with pytest.raises(ValidationFailed):
        parse_schedule([{"id": "7", "time_slots": []}])
