from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from tasktrack.domain.entities import (
    HabitEntity,
    RecurrenceEntity,
    TaskCompletionEntity,
    TaskEntity,
    TimeSlotEntity,
)
from tasktrack.domain.enums import SlotType, StatusFilter, TaskPriority, TaskState
from tasktrack.domain.filters import TaskFilters

from .models import HabitModel, TaskCompletionModel, TaskModel, TimeSlotModel, utcnow
from .recurrence_store import RecurrencePatternStore

STATE_COMPLETED = TaskState.COMPLETED.value


def to_slot_entity(
    model: TimeSlotModel, recurrence: RecurrenceEntity | None = None
) -> TimeSlotEntity:
    return TimeSlotEntity(
        id=model.id,
        user_id=model.user_id,
        task_id=model.task_id,
        start_time=model.start_time,
        end_time=model.end_time,
        start_minutes=model.start_minutes,
        end_minutes=model.end_minutes,
        slot_type=SlotType(model.slot_type) if model.slot_type else None,
        recurrence=recurrence,
    )


def to_habit_entity(model: HabitModel) -> HabitEntity:
    return HabitEntity(
        id=model.id,
        user_id=model.user_id,
        task_id=model.task_id,
        recurrence_id=model.recurrence_id,
        streak=model.streak,
        last_completed=model.last_completed,
    )


def _to_entity(
    model: TaskModel,
    slots: Iterable[TimeSlotEntity] = (),
    subtask_ids: Iterable[int] = (),
    recurrence: RecurrenceEntity | None = None,
    habit: HabitEntity | None = None,
) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        user_id=model.user_id,
        parent_task_id=model.parent_task_id,
        title=model.title,
        description=model.description,
        priority=TaskPriority(model.priority),
        state=TaskState(model.state),
        deadline=model.deadline,
        estimated_time=model.estimated_time,
        reward_points=model.reward_points,
        created_at=model.created_at,
        updated_at=model.updated_at,
        time_slots=tuple(slots),
        subtask_ids=tuple(sorted(subtask_ids)),
        recurrence=recurrence,
        habit=habit,
    )


def _apply_filters(stmt, filters: TaskFilters) -> object:
    if filters.status == StatusFilter.COMPLETED:
        stmt = stmt.where(TaskModel.state == STATE_COMPLETED)
    elif filters.status == StatusFilter.INCOMPLETE:
        stmt = stmt.where(TaskModel.state != STATE_COMPLETED)
    return stmt


class TaskRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_owned(self, user_id: int, task_id: int) -> Optional[TaskModel]:
        stmt = select(TaskModel).where(TaskModel.id == task_id, TaskModel.user_id == user_id)
        return self._session.scalars(stmt).first()

    def owned_ids(self, user_id: int, task_ids: Iterable[int]) -> set[int]:
        ids = set(task_ids)
        if not ids:
            return set()
        stmt = select(TaskModel.id).where(TaskModel.id.in_(ids), TaskModel.user_id == user_id)
        return set(self._session.scalars(stmt))

    def list_models(self, user_id: int, filters: TaskFilters) -> list[TaskModel]:
        stmt = select(TaskModel).where(TaskModel.user_id == user_id)
        stmt = _apply_filters(stmt, filters)
        stmt = stmt.order_by(TaskModel.created_at.asc(), TaskModel.id.asc())
        return list(self._session.scalars(stmt))

    def create_task(self, user_id: int, data: dict, parent_task_id: int | None) -> TaskModel:
        task = TaskModel(user_id=user_id, parent_task_id=parent_task_id, **data)
        self._session.add(task)
        self._session.flush()
        return task

    def update_task(self, task: TaskModel, data: dict) -> TaskModel:
        for key, value in data.items():
            setattr(task, key, value)
        task.updated_at = utcnow()
        self._session.flush()
        return task

    def set_state(self, user_id: int, task_id: int, state: TaskState) -> bool:
        result = self._session.execute(
            update(TaskModel)
            .where(TaskModel.id == task_id, TaskModel.user_id == user_id)
            .values(state=state.value, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        return bool(result.rowcount)

    def child_ids(self, user_id: int, parent_id: int) -> list[int]:
        stmt = select(TaskModel.id).where(
            TaskModel.parent_task_id == parent_id, TaskModel.user_id == user_id
        )
        return list(self._session.scalars(stmt))

    def detach_foreign_children(self, user_id: int, parent_ids: Iterable[int]) -> int:
        # Children owned by another user are unlinked, never deleted.
        ids = list(parent_ids)
        if not ids:
            return 0
        result = self._session.execute(
            update(TaskModel)
            .where(TaskModel.parent_task_id.in_(ids), TaskModel.user_id != user_id)
            .values(parent_task_id=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def delete_owned(self, user_id: int, task_id: int) -> bool:
        result = self._session.execute(
            delete(TaskModel)
            .where(TaskModel.id == task_id, TaskModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def delete_completions(self, task_ids: Iterable[int]) -> int:
        ids = list(task_ids)
        if not ids:
            return 0
        result = self._session.execute(
            delete(TaskCompletionModel).where(TaskCompletionModel.task_id.in_(ids))
        )
        return result.rowcount or 0

    def add_completion(self, task_id: int, completed_at: datetime) -> TaskCompletionModel:
        completion = TaskCompletionModel(task_id=task_id, completed_at=completed_at)
        self._session.add(completion)
        self._session.flush()
        return completion

    def list_completions(self, task_id: int) -> list[TaskCompletionEntity]:
        stmt = (
            select(TaskCompletionModel)
            .where(TaskCompletionModel.task_id == task_id)
            .order_by(TaskCompletionModel.completed_at.asc(), TaskCompletionModel.id.asc())
        )
        return [
            TaskCompletionEntity(id=row.id, task_id=row.task_id, completed_at=row.completed_at)
            for row in self._session.scalars(stmt)
        ]

    def hydrate(self, user_id: int, tasks: list[TaskModel]) -> list[TaskEntity]:
        if not tasks:
            return []
        ids = [task.id for task in tasks]

        slots_by_task: dict[int, list[TimeSlotEntity]] = defaultdict(list)
        slot_stmt = (
            select(TimeSlotModel)
            .where(TimeSlotModel.task_id.in_(ids), TimeSlotModel.user_id == user_id)
            .order_by(TimeSlotModel.start_time.asc(), TimeSlotModel.id.asc())
        )
        for slot in self._session.scalars(slot_stmt):
            slots_by_task[slot.task_id].append(to_slot_entity(slot))

        children: dict[int, list[int]] = defaultdict(list)
        child_stmt = select(TaskModel.id, TaskModel.parent_task_id).where(
            TaskModel.parent_task_id.in_(ids), TaskModel.user_id == user_id
        )
        for child_id, parent_id in self._session.execute(child_stmt):
            children[parent_id].append(child_id)

        habit_stmt = select(HabitModel).where(
            HabitModel.task_id.in_(ids), HabitModel.user_id == user_id
        )
        habits = {habit.task_id: habit for habit in self._session.scalars(habit_stmt)}
        patterns = RecurrencePatternStore(self._session).get_many(
            habit.recurrence_id for habit in habits.values()
        )

        hydrated = []
        for task in tasks:
            habit = habits.get(task.id)
            hydrated.append(
                _to_entity(
                    task,
                    slots=slots_by_task.get(task.id, ()),
                    subtask_ids=children.get(task.id, ()),
                    recurrence=patterns.get(habit.recurrence_id) if habit else None,
                    habit=to_habit_entity(habit) if habit else None,
                )
            )
        return hydrated
