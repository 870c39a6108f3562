from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from tasktrack.domain.entities import TimeSlotEntity
from tasktrack.domain.errors import ValidationFailed
from tasktrack.domain.validation import AvailabilitySpec, SlotSpec
from tasktrack.infra.models import TimeSlotModel
from tasktrack.infra.recurrence_store import RecurrencePatternStore
from tasktrack.infra.repository import to_slot_entity

logger = logging.getLogger(__name__)


class TimeSlotSynchronizer:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._patterns = RecurrencePatternStore(session)

    def replace_for_task(
        self, owner_id: int, task_id: int, slots: list[SlotSpec]
    ) -> list[TimeSlotEntity]:
        for index, slot in enumerate(slots):
            if slot.end_time <= slot.start_time:
                raise ValidationFailed(
                    f"time_slots[{index}] must end after it starts", field=f"time_slots[{index}]"
                )

        self._session.execute(
            delete(TimeSlotModel).where(
                TimeSlotModel.task_id == task_id, TimeSlotModel.user_id == owner_id
            )
        )
        models = [
            TimeSlotModel(
                user_id=owner_id,
                task_id=task_id,
                start_time=slot.start_time,
                end_time=slot.end_time,
            )
            for slot in slots
        ]
        self._session.add_all(models)
        self._session.flush()
        logger.debug("Replaced slots task=%s count=%s", task_id, len(models))
        return [to_slot_entity(model) for model in models]

    def clear_for_tasks(self, owner_id: int, task_ids: list[int]) -> int:
        if not task_ids:
            return 0
        result = self._session.execute(
            delete(TimeSlotModel).where(
                TimeSlotModel.task_id.in_(task_ids), TimeSlotModel.user_id == owner_id
            )
        )
        return result.rowcount or 0

    def replace_availability(
        self, owner_id: int, slots: list[AvailabilitySpec]
    ) -> list[TimeSlotEntity]:
        for index, slot in enumerate(slots):
            if slot.end_minutes <= slot.start_minutes:
                raise ValidationFailed(
                    f"time_slots[{index}] must end after it starts", field=f"time_slots[{index}]"
                )

        existing = list(self._session.scalars(self._availability_stmt(owner_id)))
        stale_patterns = [slot.recurrence_id for slot in existing]
        self._session.execute(
            delete(TimeSlotModel).where(
                TimeSlotModel.user_id == owner_id, TimeSlotModel.task_id.is_(None)
            )
        )
        # Each recurring slot owns its pattern outright.
        self._patterns.delete(stale_patterns)

        created = []
        for slot in slots:
            pattern = self._patterns.create(slot.recurrence) if slot.recurrence else None
            model = TimeSlotModel(
                user_id=owner_id,
                task_id=None,
                start_minutes=slot.start_minutes,
                end_minutes=slot.end_minutes,
                slot_type=slot.slot_type.value,
                recurrence_id=pattern.id if pattern else None,
            )
            self._session.add(model)
            created.append(model)
        self._session.flush()
        logger.debug("Replaced availability user=%s count=%s", owner_id, len(created))
        return self.list_availability(owner_id)

    def list_availability(self, owner_id: int) -> list[TimeSlotEntity]:
        models = list(self._session.scalars(self._availability_stmt(owner_id)))
        patterns = self._patterns.get_many(model.recurrence_id for model in models)
        return [
            to_slot_entity(model, patterns.get(model.recurrence_id) if model.recurrence_id else None)
            for model in models
        ]

    @staticmethod
    def _availability_stmt(owner_id: int):
        return (
            select(TimeSlotModel)
            .where(TimeSlotModel.user_id == owner_id, TimeSlotModel.task_id.is_(None))
            .order_by(TimeSlotModel.start_minutes.asc(), TimeSlotModel.id.asc())
        )
