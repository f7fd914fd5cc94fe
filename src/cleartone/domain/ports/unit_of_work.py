"""Transaction boundary the services work inside."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from cleartone.domain.ports.persistence import (
        ClearanceRequestRepository,
        DerivativeWorkRepository,
        NegotiationEventRepository,
        OriginalWorkRepository,
        PartyRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Bundle of repositories sharing one transaction."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Opens on ``__enter__``; anything not committed before exit is discarded.

    ``commit`` raises ``ConcurrentModification`` when a stored request changed
    underneath the transaction.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ClearanceRepositories(RepositoryCollection):
    parties: PartyRepository
    original_works: OriginalWorkRepository
    derivative_works: DerivativeWorkRepository
    requests: ClearanceRequestRepository
    events: NegotiationEventRepository


type ClearanceUnitOfWork = UnitOfWork[ClearanceRepositories]
type ClearanceUnitOfWorkFactory = Callable[[], ClearanceUnitOfWork]
