from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from tasktrack.domain.entities import RecurrenceEntity
from tasktrack.domain.enums import Frequency, Weekday
from tasktrack.domain.validation import RecurrenceSpec

from .models import RecurrencePatternModel


def _encode_days(days: Iterable[Weekday]) -> str:
    return ",".join(day.value for day in days)


def _decode_days(raw: str | None) -> tuple[Weekday, ...]:
    if not raw:
        return ()
    return tuple(Weekday(part) for part in raw.split(",") if part)


def to_recurrence_entity(model: RecurrencePatternModel) -> RecurrenceEntity:
    return RecurrenceEntity(
        id=model.id,
        frequency=Frequency(model.frequency),
        interval=model.interval,
        specific_days=_decode_days(model.specific_days),
    )


class RecurrencePatternStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, spec: RecurrenceSpec) -> RecurrencePatternModel:
        pattern = RecurrencePatternModel(
            frequency=spec.frequency.value,
            interval=spec.interval,
            specific_days=_encode_days(spec.specific_days),
        )
        self._session.add(pattern)
        self._session.flush()
        return pattern

    def update(self, pattern_id: int, spec: RecurrenceSpec) -> RecurrencePatternModel | None:
        pattern = self._session.get(RecurrencePatternModel, pattern_id)
        if pattern is None:
            return None
        pattern.frequency = spec.frequency.value
        pattern.interval = spec.interval
        pattern.specific_days = _encode_days(spec.specific_days)
        self._session.flush()
        return pattern

    def delete(self, pattern_ids: Iterable[int | None]) -> int:
        ids = [pattern_id for pattern_id in pattern_ids if pattern_id is not None]
        if not ids:
            return 0
        result = self._session.execute(
            delete(RecurrencePatternModel).where(RecurrencePatternModel.id.in_(ids))
        )
        return result.rowcount or 0

    def get_many(self, pattern_ids: Iterable[int | None]) -> dict[int, RecurrenceEntity]:
        ids = {pattern_id for pattern_id in pattern_ids if pattern_id is not None}
        if not ids:
            return {}
        stmt = select(RecurrencePatternModel).where(RecurrencePatternModel.id.in_(ids))
        return {
            pattern.id: to_recurrence_entity(pattern)
            for pattern in self._session.scalars(stmt)
        }
