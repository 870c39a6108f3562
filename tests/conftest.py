from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tasktrack.config import Settings
from tasktrack.infra.db import Base
from tasktrack.infra.models import UserModel
from tasktrack.services.task_service import TaskService


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def settings() -> Settings:
    return Settings(database_url="sqlite+pysqlite://")


@pytest.fixture()
def service(session_factory, settings) -> TaskService:
    return TaskService(session_factory, settings)


@pytest.fixture()
def make_user(session_factory):
    def _make(username: str = "alice", points: int = 0) -> int:
        with session_factory() as session:
            user = UserModel(username=username, password_hash="hash", reward_points=points)
            session.add(user)
            session.commit()
            return user.id

    return _make


@pytest.fixture()
def count_rows(session_factory):
    def _count(model, *criteria) -> int:
        with session_factory() as session:
            stmt = select(func.count()).select_from(model)
            if criteria:
                stmt = stmt.where(*criteria)
            return session.scalar(stmt) or 0

    return _count
