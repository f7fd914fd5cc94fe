from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.pool import StaticPool

from cleartone.adapters.sqlalchemy import unit_of_work as uow_module
from cleartone.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyClearanceUnitOfWork,
    StartupError,
    configured_engine,
    create_engine_for,
    is_started,
    shutdown,
    startup,
)
from cleartone.config import DatabaseConfig
from cleartone.domain.model import Party

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from sqlalchemy.engine import Engine


def test_unit_of_work_requires_startup() -> None:
    shutdown()
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyClearanceUnitOfWork()


def test_startup_twice_requires_force(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    try:
        with pytest.raises(StartupError):
            startup(engine=sqlite_engine)
        assert configured_engine() is sqlite_engine
        assert is_started()
    finally:
        shutdown()
    assert configured_engine() is None


def test_commit_persists_and_exit_closes(
    sqlite_unit_of_work: Callable[[], SqlAlchemyClearanceUnitOfWork],
) -> None:
    party = Party(display_name="Label Records")
    with sqlite_unit_of_work() as uow:
        uow.repositories.parties.add(party)
        uow.commit()

    with pytest.raises(StartupError):
        _ = uow.repositories

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.parties.get(party.id)
        assert stored is not None
        assert stored.display_name == "Label Records"


def test_exception_rolls_back(
    sqlite_unit_of_work: Callable[[], SqlAlchemyClearanceUnitOfWork],
) -> None:
    party = Party(display_name="Label Records")
    with pytest.raises(RuntimeError), sqlite_unit_of_work() as uow:
        uow.repositories.parties.add(party)
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.parties.get(party.id) is None


def test_create_engine_for_sqlite_file(tmp_path: Path) -> None:
    engine = create_engine_for(
        DatabaseConfig(uri=f"sqlite+pysqlite:///{tmp_path / 'db.sqlite'}", timeout_seconds=2.5)
    )
    try:
        assert engine.pool.timeout() == 2.5  # type: ignore[attr-defined]
    finally:
        engine.dispose()


def test_create_engine_for_memory_database() -> None:
    engine = create_engine_for(DatabaseConfig(uri="sqlite+pysqlite:///:memory:"))
    try:
        assert engine.url.database == ":memory:"
    finally:
        engine.dispose()


def test_startup_from_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", f"sqlite+pysqlite:///{tmp_path / 'app.db'}")
    startup(force=True)
    try:
        engine = configured_engine()
        assert engine is not None
        assert engine.url.database == str(tmp_path / "app.db")
        assert not isinstance(engine.pool, StaticPool)
        assert uow_module.is_started()
    finally:
        shutdown()


def test_open_unit_of_work_cannot_be_reentered(
    sqlite_unit_of_work: Callable[[], SqlAlchemyClearanceUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()
    with uow, pytest.raises(StartupError):
        uow.__enter__()
    with pytest.raises(StartupError):
        _ = uow.session
