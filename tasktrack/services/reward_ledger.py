from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from tasktrack.domain.errors import NotFoundOrUnauthorized
from tasktrack.infra.models import UserModel

logger = logging.getLogger(__name__)


class RewardLedger:
    def __init__(self, session: Session) -> None:
        self._session = session

    def credit(self, user_id: int, points: int | None) -> int:
        amount = points or 0
        result = self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(reward_points=UserModel.reward_points + amount)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            raise NotFoundOrUnauthorized("User", user_id)
        logger.debug("Credited user=%s points=%s", user_id, amount)
        return amount

    def balance(self, user_id: int) -> int:
        points = self._session.scalar(
            select(UserModel.reward_points).where(UserModel.id == user_id)
        )
        if points is None:
            raise NotFoundOrUnauthorized("User", user_id)
        return points
