from __future__ import annotations

import logging

from sqlalchemy.orm import sessionmaker

from tasktrack.domain.entities import TimeSlotEntity
from tasktrack.domain.validation import parse_availability
from tasktrack.infra.db import SessionLocal, transaction
from tasktrack.services.slot_sync import TimeSlotSynchronizer

logger = logging.getLogger(__name__)


class AvailabilityService:
    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory

    def list_slots(self, user_id: int) -> list[TimeSlotEntity]:
        with self._session_factory() as session:
            return TimeSlotSynchronizer(session).list_availability(user_id)

    def replace_slots(self, user_id: int, slots: list[dict]) -> list[TimeSlotEntity]:
        specs = parse_availability(slots)
        with transaction(self._session_factory) as session:
            replaced = TimeSlotSynchronizer(session).replace_availability(user_id, specs)
        logger.info("Replaced availability user=%s count=%s", user_id, len(replaced))
        return replaced
