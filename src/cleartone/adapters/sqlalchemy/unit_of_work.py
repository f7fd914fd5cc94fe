"""SQLAlchemy-backed unit of work for clearance negotiation.

The adapter keeps one module-level engine. ``startup`` migrates its schema and
every unit of work opens a fresh session on it; ``shutdown`` disposes it again.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from cleartone.adapters.sqlalchemy.mappings import start_mappers
from cleartone.adapters.sqlalchemy.migrations import current_revision, upgrade_head
from cleartone.adapters.sqlalchemy.repositories import (
    SqlAlchemyClearanceRequestRepository,
    SqlAlchemyDerivativeWorkRepository,
    SqlAlchemyNegotiationEventRepository,
    SqlAlchemyOriginalWorkRepository,
    SqlAlchemyPartyRepository,
    translate_storage_errors,
)
from cleartone.config import DatabaseConfig, get_database_config
from cleartone.domain.ports.unit_of_work import ClearanceRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """The adapter or a unit of work was used in the wrong lifecycle phase."""


_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None


def create_engine_for(config: DatabaseConfig) -> Engine:
    """Build an engine whose connection checkout and lock waits honour the timeout."""

    url = make_url(config.uri)
    options: dict[str, Any] = {"future": True}
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": config.timeout_seconds}
        if url.database in (None, "", ":memory:"):
            # singleton pool, takes no checkout timeout
            return create_engine(url, **options)
    return create_engine(url, pool_timeout=config.timeout_seconds, **options)


def startup(
    *,
    engine: Engine | None = None,
    database_config: DatabaseConfig | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to ``engine`` (or one built from config) and migrate it."""

    global _engine, _sessions  # noqa: PLW0603

    if _engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already started; pass force=True to rebind")

    target = engine or create_engine_for(database_config or get_database_config())
    start_mappers()
    with translate_storage_errors():
        upgrade_head(engine=target)
        log.info("Database ready at revision %s", current_revision(target))

    _engine = target
    _sessions = sessionmaker(bind=target, expire_on_commit=False)


def configured_engine() -> Engine | None:
    return _engine


def is_started() -> bool:
    return _engine is not None


def shutdown() -> None:
    """Dispose the bound engine; later units of work fail until ``startup`` runs again."""

    global _engine, _sessions  # noqa: PLW0603

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


def _session_factory() -> sessionmaker[Session]:
    if _sessions is None:
        raise StartupError(
            "SQLAlchemy adapter not started; call "
            "cleartone.adapters.sqlalchemy.unit_of_work.startup() first"
        )
    return _sessions


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """One session per ``with`` block; repositories are rebuilt for each session."""

    def __init__(self) -> None:
        self._factory = _session_factory()
        self._session: Session | None = None
        self._repositories: TRepositories | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._factory()
        self._repositories = self._build_repositories(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        with translate_storage_errors():
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories


class SqlAlchemyClearanceUnitOfWork(BaseSqlAlchemyUnitOfWork[ClearanceRepositories]):
    def _build_repositories(self, session: Session) -> ClearanceRepositories:
        return ClearanceRepositories(
            parties=SqlAlchemyPartyRepository(session),
            original_works=SqlAlchemyOriginalWorkRepository(session),
            derivative_works=SqlAlchemyDerivativeWorkRepository(session),
            requests=SqlAlchemyClearanceRequestRepository(session),
            events=SqlAlchemyNegotiationEventRepository(session),
        )
