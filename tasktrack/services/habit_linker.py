from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from tasktrack.domain.entities import HabitEntity, RecurrenceEntity
from tasktrack.domain.enums import Frequency
from tasktrack.domain.validation import RecurrenceSpec
from tasktrack.infra.models import HabitModel
from tasktrack.infra.recurrence_store import RecurrencePatternStore, to_recurrence_entity
from tasktrack.infra.repository import to_habit_entity

logger = logging.getLogger(__name__)


class HabitLinkageManager:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._patterns = RecurrencePatternStore(session)

    def get(self, owner_id: int, task_id: int) -> HabitModel | None:
        stmt = select(HabitModel).where(
            HabitModel.task_id == task_id, HabitModel.user_id == owner_id
        )
        return self._session.scalars(stmt).first()

    def attach(
        self, owner_id: int, task_id: int, spec: RecurrenceSpec
    ) -> tuple[HabitEntity, RecurrenceEntity]:
        habit = self.get(owner_id, task_id)
        pattern = None
        if habit is not None:
            pattern = self._patterns.update(habit.recurrence_id, spec)
        if pattern is None:
            pattern = self._patterns.create(spec)
        if habit is None:
            habit = HabitModel(user_id=owner_id, task_id=task_id, recurrence_id=pattern.id, streak=0)
            self._session.add(habit)
            logger.debug("Linked habit task=%s pattern=%s", task_id, pattern.id)
        else:
            habit.recurrence_id = pattern.id
        self._session.flush()
        return to_habit_entity(habit), to_recurrence_entity(pattern)

    def detach(self, owner_id: int, task_id: int) -> bool:
        habit = self.get(owner_id, task_id)
        if habit is None:
            return False
        pattern_id = habit.recurrence_id
        self._session.delete(habit)
        self._session.flush()
        self._patterns.delete([pattern_id])
        logger.debug("Unlinked habit task=%s pattern=%s", task_id, pattern_id)
        return True

    def detach_many(self, owner_id: int, task_ids: Iterable[int]) -> int:
        ids = list(task_ids)
        if not ids:
            return 0
        stmt = select(HabitModel).where(
            HabitModel.task_id.in_(ids), HabitModel.user_id == owner_id
        )
        habits = list(self._session.scalars(stmt))
        pattern_ids = [habit.recurrence_id for habit in habits]
        for habit in habits:
            self._session.delete(habit)
        self._session.flush()
        self._patterns.delete(pattern_ids)
        return len(habits)

    def record_completion(
        self, owner_id: int, task_id: int, completed_at: datetime
    ) -> HabitEntity | None:
        habit = self.get(owner_id, task_id)
        if habit is None:
            return None
        patterns = self._patterns.get_many([habit.recurrence_id])
        pattern = patterns.get(habit.recurrence_id)
        habit.streak = next_streak(habit.streak, habit.last_completed, completed_at, pattern)
        habit.last_completed = completed_at
        self._session.flush()
        return to_habit_entity(habit)


def next_streak(
    streak: int,
    last_completed: datetime | None,
    completed_at: datetime,
    pattern: RecurrenceEntity | None,
) -> int:
    if last_completed is None or pattern is None:
        return max(streak, 0) + 1
    last_day = last_completed.date()
    today = completed_at.date()
    if today <= last_day:
        return max(streak, 1)
    expected = next_occurrence(last_day, pattern)
    if today <= expected:
        return streak + 1
    return 1


def next_occurrence(current: date, pattern: RecurrenceEntity) -> date:
    interval = max(int(pattern.interval or 1), 1)
    if pattern.frequency == Frequency.DAILY or not pattern.specific_days:
        return current + timedelta(days=interval)

    wanted = {day.position for day in pattern.specific_days}
    for offset in range(1, 8):
        candidate = current + timedelta(days=offset)
        if candidate.weekday() not in wanted:
            continue
        if candidate.weekday() > current.weekday():
            return candidate
        # Wrapped into the following week.
        return candidate + timedelta(weeks=interval - 1)
    return current + timedelta(weeks=interval)
