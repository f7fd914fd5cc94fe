"""Negotiation state machine.

Pure transition functions over :class:`ClearanceRequest`. Each one checks, in
order, the caller's role on the request, the current status and then the
supplied fields, mutates the request and returns the
:class:`NegotiationEvent` describing the move. Persistence and version checks
live in the service layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from cleartone.domain.errors import InvalidTransition, Unauthorized, ValidationError
from cleartone.domain.model import (
    ClearanceStatus,
    Decision,
    NegotiationAction,
    NegotiationEvent,
    PartyRole,
)
from cleartone.domain.model.clearance import check_royalty

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID

    from cleartone.domain.model import ClearanceRequest


@dataclass(frozen=True, slots=True)
class TransitionRule:
    action: NegotiationAction
    actor: PartyRole
    sources: frozenset[ClearanceStatus]
    target: ClearanceStatus


@dataclass(frozen=True, slots=True)
class Terms:
    """Fields a rights holder may attach to a response."""

    terms_of_use: str | None = None
    royalty_percentage: float | None = None
    notes: str | None = None


_PENDING = ClearanceStatus.PENDING
_NEGOTIATING = ClearanceStatus.NEGOTIATING
_APPROVED = ClearanceStatus.APPROVED

RULES: Final[Mapping[NegotiationAction, TransitionRule]] = MappingProxyType(
    {
        rule.action: rule
        for rule in (
            TransitionRule(
                NegotiationAction.APPROVE,
                PartyRole.RIGHTS_HOLDER,
                frozenset({_PENDING, _NEGOTIATING}),
                ClearanceStatus.APPROVED,
            ),
            TransitionRule(
                NegotiationAction.REJECT,
                PartyRole.RIGHTS_HOLDER,
                frozenset({_PENDING, _NEGOTIATING}),
                ClearanceStatus.REJECTED,
            ),
            TransitionRule(
                NegotiationAction.NEGOTIATE,
                PartyRole.RIGHTS_HOLDER,
                frozenset({_PENDING, _NEGOTIATING, _APPROVED}),
                ClearanceStatus.NEGOTIATING,
            ),
            TransitionRule(
                NegotiationAction.COUNTER,
                PartyRole.REQUESTER,
                frozenset({_NEGOTIATING, _APPROVED}),
                ClearanceStatus.NEGOTIATING,
            ),
            TransitionRule(
                NegotiationAction.ACCEPT,
                PartyRole.REQUESTER,
                frozenset({_APPROVED}),
                ClearanceStatus.FINALIZED,
            ),
        )
    }
)

ALLOWED_TRANSITIONS: Final[Mapping[ClearanceStatus, frozenset[ClearanceStatus]]] = (
    MappingProxyType(
        {
            status: frozenset(rule.target for rule in RULES.values() if status in rule.sources)
            for status in ClearanceStatus
        }
    )
)


def can_transition(current: ClearanceStatus, target: ClearanceStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def authorize(
    request: ClearanceRequest, actor_id: UUID, action: NegotiationAction
) -> TransitionRule:
    """Compare the caller with the party stored on this request for ``action``."""

    rule = RULES[action]
    if request.role_of(actor_id) is not rule.actor:
        raise Unauthorized(
            f"only the {rule.actor.value.replace('_', ' ')} may {action.value} this request",
            status=request.status,
        )
    return rule


def guard(request: ClearanceRequest, actor_id: UUID, action: NegotiationAction) -> TransitionRule:
    """Check the role and then the status guard for ``action``."""

    rule = authorize(request, actor_id, action)
    if request.status not in rule.sources:
        raise InvalidTransition(
            f"cannot {action.value} a request in status {request.status.value}",
            status=request.status,
        )
    return rule


def creation_event(request: ClearanceRequest) -> NegotiationEvent:
    return NegotiationEvent(
        request_id=request.id,
        action=NegotiationAction.CREATE,
        actor_id=request.requester_id,
        from_status=None,
        to_status=request.status,
        version=request.version,
        occurred_at=request.request_date,
    )


def respond(
    request: ClearanceRequest,
    actor_id: UUID,
    decision: Decision,
    terms: Terms,
    *,
    now: datetime,
) -> NegotiationEvent:
    """Apply a rights holder's approve / reject / negotiate decision."""

    action = NegotiationAction(decision.value)
    rule = guard(request, actor_id, action)
    terms_of_use = _clean(terms.terms_of_use)
    notes = _clean(terms.notes)
    check_royalty(terms.royalty_percentage)

    if decision is Decision.APPROVE and terms_of_use is None:
        raise ValidationError("terms of use are required to approve", field="terms_of_use")
    if decision is Decision.REJECT and notes is None:
        raise ValidationError("notes are required to reject", field="notes")
    if (
        decision is Decision.NEGOTIATE
        and terms_of_use is None
        and terms.royalty_percentage is None
    ):
        raise ValidationError(
            "terms of use or a royalty percentage are required to negotiate",
            field="terms_of_use",
        )

    if decision is not Decision.REJECT:
        if terms_of_use is not None:
            request.terms_of_use = terms_of_use
        if terms.royalty_percentage is not None:
            request.royalty_percentage = terms.royalty_percentage
    if notes is not None:
        request.notes = notes
    if request.response_date is None:
        request.response_date = now

    return _move(
        request,
        rule,
        actor_id,
        now,
        terms_of_use=terms_of_use if decision is not Decision.REJECT else None,
        royalty_percentage=(
            terms.royalty_percentage if decision is not Decision.REJECT else None
        ),
        notes=notes,
    )


def counter(
    request: ClearanceRequest,
    actor_id: UUID,
    counter_proposal: str,
    *,
    now: datetime,
    notes: str | None = None,
) -> NegotiationEvent:
    """Record the requester's counter-proposal."""

    rule = guard(request, actor_id, NegotiationAction.COUNTER)
    proposal = _clean(counter_proposal)
    if proposal is None:
        raise ValidationError("a counter proposal is required", field="counter_proposal")
    notes = _clean(notes)

    request.counter_proposal = proposal
    if notes is not None:
        request.notes = notes
    if request.counter_date is None:
        request.counter_date = now
    return _move(request, rule, actor_id, now, counter_proposal=proposal, notes=notes)


def accept(request: ClearanceRequest, actor_id: UUID, *, now: datetime) -> NegotiationEvent:
    """Requester accepts the approved terms; the request becomes final."""

    rule = guard(request, actor_id, NegotiationAction.ACCEPT)
    request.finalized_date = now
    return _move(request, rule, actor_id, now)


def _move(
    request: ClearanceRequest,
    rule: TransitionRule,
    actor_id: UUID,
    now: datetime,
    *,
    terms_of_use: str | None = None,
    royalty_percentage: float | None = None,
    counter_proposal: str | None = None,
    notes: str | None = None,
) -> NegotiationEvent:
    previous = request.status
    request.status = rule.target
    return NegotiationEvent(
        request_id=request.id,
        action=rule.action,
        actor_id=actor_id,
        from_status=previous,
        to_status=rule.target,
        # the version the conditional write is about to produce
        version=request.version + 1,
        occurred_at=now,
        terms_of_use=terms_of_use,
        royalty_percentage=royalty_percentage,
        counter_proposal=counter_proposal,
        notes=notes,
    )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
