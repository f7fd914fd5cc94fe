"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm.exc import StaleDataError

from cleartone.adapters.sqlalchemy.mappings import (
    clearance_request_table,
    derivative_work_table,
    negotiation_event_table,
    original_work_table,
)
from cleartone.domain.errors import ConcurrentModification, NotFound, RepositoryUnavailable
from cleartone.domain.model import (
    ClearanceRequest,
    ClearanceStatus,
    DerivativeWork,
    NegotiationEvent,
    OriginalWork,
    Party,
    PartyRole,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterator

    from sqlalchemy.orm import Session

log = getLogger(__name__)


@contextmanager
def translate_storage_errors() -> Iterator[None]:
    """Surface driver timeouts and lost connections as ``RepositoryUnavailable``."""

    try:
        yield
    except (OperationalError, PoolTimeoutError) as exc:
        log.warning("Storage unavailable: %s", exc)
        raise RepositoryUnavailable(f"storage unavailable: {exc}") from exc


class SqlAlchemyEntityRepository[TEntity]:
    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    def add(self, entity: TEntity) -> None:
        with translate_storage_errors():
            self.session.add(entity)
            self.session.flush()

    def get(self, entity_id: uuid.UUID) -> TEntity | None:
        with translate_storage_errors():
            return self.session.get(self._entity_cls, entity_id)


class SqlAlchemyPartyRepository(SqlAlchemyEntityRepository[Party]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Party)


class SqlAlchemyOriginalWorkRepository(SqlAlchemyEntityRepository[OriginalWork]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, OriginalWork)

    def list_all(self) -> list[OriginalWork]:
        stmt = select(OriginalWork).order_by(
            original_work_table.c.registered_at, original_work_table.c.id
        )
        with translate_storage_errors():
            return list(self.session.execute(stmt).scalars())


class SqlAlchemyDerivativeWorkRepository(SqlAlchemyEntityRepository[DerivativeWork]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, DerivativeWork)

    def list_for_owner(self, owner_id: uuid.UUID) -> list[DerivativeWork]:
        table = derivative_work_table
        stmt = (
            select(DerivativeWork)
            .where(table.c.owner_id == owner_id)
            .order_by(table.c.registered_at, table.c.id)
        )
        with translate_storage_errors():
            return list(self.session.execute(stmt).scalars())


class SqlAlchemyNegotiationEventRepository(SqlAlchemyEntityRepository[NegotiationEvent]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, NegotiationEvent)

    def list_for_request(self, request_id: uuid.UUID) -> list[NegotiationEvent]:
        stmt = (
            select(NegotiationEvent)
            .where(negotiation_event_table.c.request_id == request_id)
            .order_by(negotiation_event_table.c.version)
        )
        with translate_storage_errors():
            return list(self.session.execute(stmt).scalars())


class SqlAlchemyClearanceRequestRepository:
    """Clearance requests with version-conditioned writes.

    The mapper's version counter turns every flush of a loaded request into
    ``UPDATE ... WHERE id = :id AND version = :loaded``; a zero row count is
    reported as ``ConcurrentModification``.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, request: ClearanceRequest) -> uuid.UUID:
        with translate_storage_errors():
            self.session.add(request)
            self.session.flush()
        return request.id

    def get(self, request_id: uuid.UUID) -> ClearanceRequest | None:
        with translate_storage_errors():
            return self.session.get(ClearanceRequest, request_id)

    def put(self, request: ClearanceRequest, *, expected_version: int) -> None:
        target = request
        if request not in self.session:
            target = self._attach(request, expected_version=expected_version)
        elif request.version != expected_version:
            raise _conflict(request.id, expected_version, request.version)

        target.version = expected_version + 1
        try:
            with translate_storage_errors():
                self.session.flush()
        except StaleDataError as exc:
            log.warning("Stale write on clearance request %s", request.id)
            raise ConcurrentModification(
                f"clearance request {request.id} was modified concurrently",
                expected_version=expected_version,
            ) from exc
        request.version = target.version

    def list_for_party(
        self, party_id: uuid.UUID, *, role: PartyRole | None = None
    ) -> list[ClearanceRequest]:
        table = clearance_request_table
        if role is PartyRole.REQUESTER:
            condition = table.c.requester_id == party_id
        elif role is PartyRole.RIGHTS_HOLDER:
            condition = table.c.rights_holder_id == party_id
        else:
            condition = or_(table.c.requester_id == party_id, table.c.rights_holder_id == party_id)
        stmt = select(ClearanceRequest).where(condition).order_by(table.c.request_date.desc())
        with translate_storage_errors():
            return list(self.session.execute(stmt).scalars())

    def count_by_status(
        self, party_id: uuid.UUID, *, role: PartyRole | None = None
    ) -> dict[ClearanceStatus, int]:
        table = clearance_request_table
        if role is PartyRole.REQUESTER:
            involves = table.c.requester_id == party_id
        elif role is PartyRole.RIGHTS_HOLDER:
            involves = table.c.rights_holder_id == party_id
        else:
            involves = or_(table.c.requester_id == party_id, table.c.rights_holder_id == party_id)
        stmt = select(table.c.status, func.count()).where(involves).group_by(table.c.status)
        with translate_storage_errors():
            rows = self.session.execute(stmt).all()
        return {ClearanceStatus(status): count for status, count in rows}

    def _attach(self, request: ClearanceRequest, *, expected_version: int) -> ClearanceRequest:
        """Merge a request read in another session, checking its stored version first."""

        with translate_storage_errors():
            stored = self.session.get(ClearanceRequest, request.id)
        if stored is None:
            raise NotFound("clearance_request", request.id)
        if stored.version != expected_version:
            raise _conflict(request.id, expected_version, stored.version)
        request.version = expected_version
        return self.session.merge(request)


def _conflict(
    request_id: uuid.UUID, expected_version: int, actual_version: int
) -> ConcurrentModification:
    return ConcurrentModification(
        f"clearance request {request_id} is at version {actual_version}, not {expected_version}",
        expected_version=expected_version,
        actual_version=actual_version,
    )
