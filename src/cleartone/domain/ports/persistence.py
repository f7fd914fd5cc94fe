"""Ports for persisting clearance aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from cleartone.domain.model import (
    ClearanceRequest,
    DerivativeWork,
    NegotiationEvent,
    OriginalWork,
    Party,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from cleartone.domain.model import ClearanceStatus, PartyRole


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class PartyRepository(Repository[Party], Protocol):
    """Repository contract for parties."""


@runtime_checkable
class OriginalWorkRepository(Repository[OriginalWork], Protocol):
    """Repository contract for original works."""

    def list_all(self) -> Sequence[OriginalWork]: ...


@runtime_checkable
class DerivativeWorkRepository(Repository[DerivativeWork], Protocol):
    """Repository contract for derivative works."""

    def list_for_owner(self, owner_id: UUID) -> Sequence[DerivativeWork]: ...


@runtime_checkable
class ClearanceRequestRepository(Protocol):
    """Persistence contract for clearance requests.

    ``get`` returns the request carrying the version it was stored with.
    ``put`` is a conditional write: it succeeds only while the stored version
    still equals ``expected_version`` and bumps the version by one, otherwise
    it raises ``ConcurrentModification``. Storage outages surface as
    ``RepositoryUnavailable``.
    """

    def create(self, request: ClearanceRequest) -> UUID: ...

    def get(self, request_id: UUID) -> ClearanceRequest | None: ...

    def put(self, request: ClearanceRequest, *, expected_version: int) -> None: ...

    def list_for_party(
        self, party_id: UUID, *, role: PartyRole | None = None
    ) -> Sequence[ClearanceRequest]: ...

    def count_by_status(
        self, party_id: UUID, *, role: PartyRole | None = None
    ) -> dict[ClearanceStatus, int]: ...


@runtime_checkable
class NegotiationEventRepository(Repository[NegotiationEvent], Protocol):
    """Append-only log of negotiation events."""

    def list_for_request(self, request_id: UUID) -> Sequence[NegotiationEvent]: ...
