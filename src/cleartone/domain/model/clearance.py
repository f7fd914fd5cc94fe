"""Clearance requests and their negotiation history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from cleartone.domain.errors import ValidationError
from cleartone.domain.model.entity import Entity, utcnow
from cleartone.domain.model.enums import ClearanceStatus, EntityType, PartyRole

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from cleartone.domain.model.enums import NegotiationAction

INITIAL_VERSION = 1
MIN_ROYALTY = 0.0
MAX_ROYALTY = 100.0


def check_royalty(value: float | None) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not MIN_ROYALTY <= value <= MAX_ROYALTY:
        raise ValidationError(
            "royalty percentage must be within [0, 100]", field="royalty_percentage"
        )


def check_confidence(value: float | None) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not 0.0 <= value <= 1.0:
        raise ValidationError("match confidence must be within [0, 1]", field="match_confidence")


@dataclass(eq=False, kw_only=True)
class ClearanceRequest(Entity):
    """A requester's application to use an original work in a derivative.

    Status and the business fields only change through the transitions in
    ``cleartone.domain.clearance.state_machine``. ``version`` is owned by the
    repository: it starts at 1 and is bumped by every persisted write.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CLEARANCE_REQUEST

    derivative_work_id: UUID
    original_work_id: UUID
    requester_id: UUID
    rights_holder_id: UUID
    usage_description: str
    status: ClearanceStatus = ClearanceStatus.PENDING

    terms_of_use: str | None = None
    royalty_percentage: float | None = None
    counter_proposal: str | None = None
    notes: str | None = None
    match_confidence: float | None = None

    request_date: datetime = field(default_factory=utcnow)
    response_date: datetime | None = None
    counter_date: datetime | None = None
    finalized_date: datetime | None = None

    version: int = INITIAL_VERSION

    def __post_init__(self) -> None:
        if self.requester_id == self.rights_holder_id:
            raise ValidationError(
                "requester and rights holder must be different parties",
                field="rights_holder_id",
            )
        if not self.usage_description or not self.usage_description.strip():
            raise ValidationError("usage description is required", field="usage_description")
        check_royalty(self.royalty_percentage)
        check_confidence(self.match_confidence)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def role_of(self, party_id: UUID) -> PartyRole | None:
        """Return the role ``party_id`` plays on this request, if any."""
        if party_id == self.requester_id:
            return PartyRole.REQUESTER
        if party_id == self.rights_holder_id:
            return PartyRole.RIGHTS_HOLDER
        return None

    def involves(self, party_id: UUID) -> bool:
        return self.role_of(party_id) is not None


@dataclass(eq=False, kw_only=True)
class NegotiationEvent(Entity):
    """Append-only audit record of one transition."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.NEGOTIATION_EVENT

    request_id: UUID
    action: NegotiationAction
    actor_id: UUID
    from_status: ClearanceStatus | None
    to_status: ClearanceStatus
    version: int
    occurred_at: datetime = field(default_factory=utcnow)

    terms_of_use: str | None = None
    royalty_percentage: float | None = None
    counter_proposal: str | None = None
    notes: str | None = None
