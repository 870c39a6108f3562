from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from tasktrack.domain.errors import NotFoundOrUnauthorized
from tasktrack.services.reward_ledger import RewardLedger


def test_credit_increments_balance(session_factory, make_user) -> None:
    user_id = make_user(points=100)
    with session_factory() as session:
        ledger = RewardLedger(session)

        assert ledger.credit(user_id, 50) == 50
        assert ledger.credit(user_id, None) == 0
        session.commit()
        assert ledger.balance(user_id) == 150


def test_credit_unknown_user_is_not_found(session_factory) -> None:
    with session_factory() as session:
        with pytest.raises(NotFoundOrUnauthorized):
            RewardLedger(session).credit(999, 10)


def test_balance_unknown_user_is_not_found(session_factory) -> None:
    with session_factory() as session:
        with pytest.raises(NotFoundOrUnauthorized):
            RewardLedger(session).balance(999)


def test_balance_never_drops_below_zero(session_factory, make_user) -> None:
    user_id = make_user(points=5)
    with session_factory() as session:
        with pytest.raises(IntegrityError):
            RewardLedger(session).credit(user_id, -10)
        session.rollback()
        assert RewardLedger(session).balance(user_id) == 5
