"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    PARTY = "party"
    ORIGINAL_WORK = "original_work"
    DERIVATIVE_WORK = "derivative_work"
    CLEARANCE_REQUEST = "clearance_request"
    NEGOTIATION_EVENT = "negotiation_event"


class ClearanceStatus(StrEnum):
    PENDING = "pending"
    NEGOTIATING = "negotiating"
    APPROVED = "approved"
    REJECTED = "rejected"
    FINALIZED = "finalized"

    @property
    def is_terminal(self) -> bool:
        return self in {ClearanceStatus.REJECTED, ClearanceStatus.FINALIZED}


class PartyRole(StrEnum):
    """Role a party plays on one specific request."""

    REQUESTER = "requester"
    RIGHTS_HOLDER = "rights_holder"


class Decision(StrEnum):
    """Rights-holder response to a request."""

    APPROVE = "approve"
    REJECT = "reject"
    NEGOTIATE = "negotiate"


class NegotiationAction(StrEnum):
    CREATE = "create"
    APPROVE = "approve"
    REJECT = "reject"
    NEGOTIATE = "negotiate"
    COUNTER = "counter"
    ACCEPT = "accept"
