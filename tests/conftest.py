from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from cleartone.adapters.sqlalchemy import start_mappers
from cleartone.adapters.sqlalchemy.migrations import upgrade_head
from cleartone.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClearanceUnitOfWork,
    shutdown,
    startup,
)
from tests.helpers.clearance import FakeUnitOfWorkFactory, StepClock

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    with Session(sqlite_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyClearanceUnitOfWork]]:
    """Adapter bound to the in-memory engine; the class itself is the factory."""

    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyClearanceUnitOfWork
    finally:
        shutdown()


@pytest.fixture
def fake_uow_factory() -> FakeUnitOfWorkFactory:
    return FakeUnitOfWorkFactory()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()
