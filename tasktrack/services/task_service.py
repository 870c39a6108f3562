from __future__ import annotations

import logging

from sqlalchemy.orm import sessionmaker

from tasktrack.config import SETTINGS, Settings
from tasktrack.domain.entities import TaskCompletionEntity, TaskEntity
from tasktrack.domain.enums import SLOT_DERIVED_STATES, TaskState
from tasktrack.domain.errors import NotFoundOrUnauthorized, ValidationFailed
from tasktrack.domain.filters import TaskFilters
from tasktrack.domain.validation import (
    clean_task_fields,
    parse_recurrence,
    parse_schedule,
    parse_slots,
)
from tasktrack.infra.db import SessionLocal, transaction
from tasktrack.infra.models import TaskModel, utcnow
from tasktrack.infra.repository import TaskRepository
from tasktrack.services.habit_linker import HabitLinkageManager
from tasktrack.services.reward_ledger import RewardLedger
from tasktrack.services.slot_sync import TimeSlotSynchronizer

logger = logging.getLogger(__name__)


def _slot_state(current: str, has_slots: bool) -> str:
    if TaskState(current) not in SLOT_DERIVED_STATES:
        return current
    return (TaskState.SCHEDULED if has_slots else TaskState.CREATED).value


class TaskService:
    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        settings: Settings = SETTINGS,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings

    def list_tasks(self, user_id: int, filters: TaskFilters | None = None) -> list[TaskEntity]:
        filters = filters or TaskFilters()
        with self._session_factory() as session:
            repo = TaskRepository(session)
            return repo.hydrate(user_id, repo.list_models(user_id, filters))

    def get_task(self, user_id: int, task_id: int) -> TaskEntity:
        with self._session_factory() as session:
            repo = TaskRepository(session)
            return self._hydrate_one(repo, user_id, self._require(repo, user_id, task_id))

    def get_points(self, user_id: int) -> int:
        with self._session_factory() as session:
            return RewardLedger(session).balance(user_id)

    def list_completions(self, user_id: int, task_id: int) -> list[TaskCompletionEntity]:
        with self._session_factory() as session:
            repo = TaskRepository(session)
            self._require(repo, user_id, task_id)
            return repo.list_completions(task_id)

    def create_task(self, user_id: int, data: dict) -> TaskEntity:
        fields = clean_task_fields(data, creating=True)
        slots = parse_slots(data["time_slots"]) if data.get("time_slots") is not None else None
        recurrence = (
            parse_recurrence(data["recurrence"]) if data.get("recurrence") is not None else None
        )
        parent_id = data.get("parent_task_id")
        if parent_id is not None and (isinstance(parent_id, bool) or not isinstance(parent_id, int)):
            raise ValidationFailed("parent_task_id must be an integer", field="parent_task_id")

        with transaction(self._session_factory) as session:
            repo = TaskRepository(session)
            if parent_id is not None:
                parent = self._require(repo, user_id, parent_id)
                if fields.get("deadline") is None:
                    fields["deadline"] = parent.deadline

            task = repo.create_task(user_id, fields, parent_id)
            if slots is not None:
                TimeSlotSynchronizer(session).replace_for_task(user_id, task.id, slots)
                task.state = _slot_state(task.state, bool(slots))
            if recurrence is not None:
                HabitLinkageManager(session).attach(user_id, task.id, recurrence)
            session.flush()
            created = self._hydrate_one(repo, user_id, task)

        logger.info(
            "Created task id=%s user=%s parent=%s slots=%s habit=%s",
            created.id,
            user_id,
            parent_id,
            len(created.time_slots),
            created.is_habit,
        )
        return created

    def update_task(self, user_id: int, task_id: int, data: dict) -> TaskEntity:
        fields = clean_task_fields(data, creating=False)
        slots = parse_slots(data["time_slots"]) if data.get("time_slots") is not None else None
        recurrence = (
            parse_recurrence(data["recurrence"]) if data.get("recurrence") is not None else None
        )

        with transaction(self._session_factory) as session:
            repo = TaskRepository(session)
            task = self._require(repo, user_id, task_id)
            repo.update_task(task, fields)

            if slots is not None:
                TimeSlotSynchronizer(session).replace_for_task(user_id, task.id, slots)
                task.state = _slot_state(task.state, bool(slots))

            habits = HabitLinkageManager(session)
            if recurrence is not None:
                habits.attach(user_id, task.id, recurrence)
            else:
                habits.detach(user_id, task.id)
            session.flush()
            updated = self._hydrate_one(repo, user_id, task)

        logger.info("Updated task id=%s user=%s", task_id, user_id)
        return updated

    def schedule_tasks(self, user_id: int, tasks: list[dict]) -> list[TaskEntity]:
        batch = parse_schedule(tasks)

        with transaction(self._session_factory) as session:
            repo = TaskRepository(session)
            sync = TimeSlotSynchronizer(session)
            owned = repo.owned_ids(user_id, [task_id for task_id, _ in batch])
            scheduled: list[int] = []
            for task_id, slots in batch:
                if task_id not in owned:
                    if self._settings.strict_schedule_ownership:
                        raise NotFoundOrUnauthorized("Task", task_id)
                    logger.warning("Skipping unowned task id=%s in schedule user=%s", task_id, user_id)
                    continue
                sync.replace_for_task(user_id, task_id, slots)
                new_state = TaskState.SCHEDULED if slots else TaskState.CREATED
                repo.set_state(user_id, task_id, new_state)
                scheduled.append(task_id)
            session.flush()
            models = [repo.get_owned(user_id, task_id) for task_id in scheduled]
            result = repo.hydrate(user_id, [model for model in models if model is not None])

        logger.info("Scheduled tasks user=%s count=%s", user_id, len(result))
        return result

    def start_task(self, user_id: int, task_id: int) -> TaskEntity:
        with transaction(self._session_factory) as session:
            repo = TaskRepository(session)
            if not repo.set_state(user_id, task_id, TaskState.IN_PROGRESS):
                raise NotFoundOrUnauthorized("Task", task_id)
            started = self._hydrate_one(repo, user_id, self._require(repo, user_id, task_id))

        logger.info("Started task id=%s user=%s", task_id, user_id)
        return started

    def complete_task(self, user_id: int, task_id: int) -> TaskEntity:
        with transaction(self._session_factory) as session:
            repo = TaskRepository(session)
            task = self._require(repo, user_id, task_id)
            if (
                self._settings.guard_repeat_completion
                and task.state == TaskState.COMPLETED.value
            ):
                raise ValidationFailed(f"Task {task_id} is already completed", field="state")

            points = RewardLedger(session).credit(user_id, task.reward_points)
            repo.set_state(user_id, task_id, TaskState.COMPLETED)

            completed_at = utcnow()
            repo.add_completion(task_id, completed_at)
            HabitLinkageManager(session).record_completion(user_id, task_id, completed_at)
            completed = self._hydrate_one(repo, user_id, task)

        logger.info("Completed task id=%s user=%s points=%s", task_id, user_id, points)
        return completed

    def delete_task(self, user_id: int, task_id: int) -> list[int]:
        with transaction(self._session_factory) as session:
            repo = TaskRepository(session)
            self._require(repo, user_id, task_id)

            subtree = self._collect_subtree(repo, user_id, task_id)
            detached = repo.detach_foreign_children(user_id, subtree)
            if detached:
                logger.warning(
                    "Detached %s foreign subtasks while deleting task id=%s user=%s",
                    detached,
                    task_id,
                    user_id,
                )
            HabitLinkageManager(session).detach_many(user_id, subtree)
            TimeSlotSynchronizer(session).clear_for_tasks(user_id, subtree)
            repo.delete_completions(subtree)

            # Descendants go before their ancestors.
            for current in reversed(subtree):
                if not repo.delete_owned(user_id, current):
                    raise NotFoundOrUnauthorized("Task", current)

        logger.info("Deleted task id=%s user=%s subtree=%s", task_id, user_id, len(subtree))
        return subtree

    @staticmethod
    def _collect_subtree(repo: TaskRepository, user_id: int, root_id: int) -> list[int]:
        order: list[int] = []
        seen: set[int] = set()
        stack = [root_id]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            order.append(current)
            stack.extend(repo.child_ids(user_id, current))
        return order

    @staticmethod
    def _require(repo: TaskRepository, user_id: int, task_id: int) -> TaskModel:
        task = repo.get_owned(user_id, task_id)
        if task is None:
            raise NotFoundOrUnauthorized("Task", task_id)
        return task

    @staticmethod
    def _hydrate_one(repo: TaskRepository, user_id: int, task: TaskModel) -> TaskEntity:
        return repo.hydrate(user_id, [task])[0]
