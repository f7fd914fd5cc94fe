from __future__ import annotations

from datetime import UTC, datetime
from itertools import product
from uuid import uuid4

import pytest

from cleartone.domain.clearance import ALLOWED_TRANSITIONS, RULES, Terms, can_transition
from cleartone.domain.clearance import state_machine as sm
from cleartone.domain.errors import InvalidTransition, Unauthorized, ValidationError
from cleartone.domain.model import (
    ClearanceRequest,
    ClearanceStatus,
    Decision,
    NegotiationAction,
)

NOW = datetime(2025, 3, 1, 10, 0, tzinfo=UTC)
REQUESTER = uuid4()
RIGHTS_HOLDER = uuid4()

FULL_TERMS = Terms(terms_of_use="credit required", royalty_percentage=10.0, notes="see contract")


def _request(status: ClearanceStatus = ClearanceStatus.PENDING) -> ClearanceRequest:
    return ClearanceRequest(
        derivative_work_id=uuid4(),
        original_work_id=uuid4(),
        requester_id=REQUESTER,
        rights_holder_id=RIGHTS_HOLDER,
        usage_description="album use",
        status=status,
    )


def _apply(request: ClearanceRequest, action: NegotiationAction) -> None:
    """Drive ``action`` with the correct actor and complete fields."""

    if action is NegotiationAction.COUNTER:
        sm.counter(request, REQUESTER, "15% instead", now=NOW)
    elif action is NegotiationAction.ACCEPT:
        sm.accept(request, REQUESTER, now=NOW)
    else:
        sm.respond(request, RIGHTS_HOLDER, Decision(action.value), FULL_TERMS, now=NOW)


def test_transition_table() -> None:
    assert ALLOWED_TRANSITIONS == {
        ClearanceStatus.PENDING: {
            ClearanceStatus.APPROVED,
            ClearanceStatus.REJECTED,
            ClearanceStatus.NEGOTIATING,
        },
        ClearanceStatus.NEGOTIATING: {
            ClearanceStatus.APPROVED,
            ClearanceStatus.REJECTED,
            ClearanceStatus.NEGOTIATING,
        },
        ClearanceStatus.APPROVED: {ClearanceStatus.FINALIZED, ClearanceStatus.NEGOTIATING},
        ClearanceStatus.REJECTED: frozenset(),
        ClearanceStatus.FINALIZED: frozenset(),
    }
    assert can_transition(ClearanceStatus.APPROVED, ClearanceStatus.NEGOTIATING)
    assert not can_transition(ClearanceStatus.PENDING, ClearanceStatus.FINALIZED)


@pytest.mark.parametrize(
    ("status", "action"),
    list(product(ClearanceStatus, RULES)),
)
def test_every_status_action_pair(status: ClearanceStatus, action: NegotiationAction) -> None:
    request = _request(status)
    rule = RULES[action]

    if status in rule.sources:
        _apply(request, action)
        assert request.status is rule.target
        assert can_transition(status, rule.target)
    else:
        with pytest.raises(InvalidTransition) as excinfo:
            _apply(request, action)
        assert excinfo.value.status is status
        assert request.status is status


@pytest.mark.parametrize("status", [ClearanceStatus.REJECTED, ClearanceStatus.FINALIZED])
def test_terminal_states_are_absorbing(status: ClearanceStatus) -> None:
    request = _request(status)
    for action in RULES:
        with pytest.raises(InvalidTransition):
            _apply(request, action)
    assert request.terms_of_use is None
    assert request.counter_proposal is None


def test_approve_sets_terms_and_response_date() -> None:
    request = _request()
    event = sm.respond(
        request, RIGHTS_HOLDER, Decision.APPROVE, Terms(terms_of_use=" credit "), now=NOW
    )

    assert request.status is ClearanceStatus.APPROVED
    assert request.terms_of_use == "credit"
    assert request.response_date == NOW
    assert event.action is NegotiationAction.APPROVE
    assert event.from_status is ClearanceStatus.PENDING
    assert event.to_status is ClearanceStatus.APPROVED
    assert event.version == request.version + 1


def test_approve_requires_terms() -> None:
    request = _request()
    with pytest.raises(ValidationError) as excinfo:
        sm.respond(request, RIGHTS_HOLDER, Decision.APPROVE, Terms(terms_of_use="  "), now=NOW)
    assert excinfo.value.field == "terms_of_use"
    assert request.status is ClearanceStatus.PENDING
    assert request.response_date is None


def test_reject_requires_notes() -> None:
    request = _request()
    with pytest.raises(ValidationError) as excinfo:
        sm.respond(request, RIGHTS_HOLDER, Decision.REJECT, Terms(), now=NOW)
    assert excinfo.value.field == "notes"


def test_negotiate_accepts_royalty_only() -> None:
    request = _request()
    sm.respond(request, RIGHTS_HOLDER, Decision.NEGOTIATE, Terms(royalty_percentage=10), now=NOW)
    assert request.status is ClearanceStatus.NEGOTIATING
    assert request.royalty_percentage == 10
    assert request.terms_of_use is None


def test_negotiate_requires_terms_or_royalty() -> None:
    with pytest.raises(ValidationError):
        sm.respond(_request(), RIGHTS_HOLDER, Decision.NEGOTIATE, Terms(notes="hm"), now=NOW)


def test_royalty_out_of_range() -> None:
    with pytest.raises(ValidationError) as excinfo:
        sm.respond(
            _request(), RIGHTS_HOLDER, Decision.NEGOTIATE, Terms(royalty_percentage=150), now=NOW
        )
    assert excinfo.value.field == "royalty_percentage"


def test_response_date_set_only_once() -> None:
    request = _request()
    later = datetime(2025, 3, 2, tzinfo=UTC)
    sm.respond(request, RIGHTS_HOLDER, Decision.NEGOTIATE, Terms(royalty_percentage=5), now=NOW)
    sm.respond(request, RIGHTS_HOLDER, Decision.APPROVE, Terms(terms_of_use="ok"), now=later)
    assert request.response_date == NOW


def test_counter_date_set_only_once() -> None:
    request = _request(ClearanceStatus.NEGOTIATING)
    later = datetime(2025, 3, 2, tzinfo=UTC)
    sm.counter(request, REQUESTER, "first", now=NOW)
    sm.counter(request, REQUESTER, "second", now=later)
    assert request.counter_proposal == "second"
    assert request.counter_date == NOW


def test_counter_requires_proposal() -> None:
    with pytest.raises(ValidationError) as excinfo:
        sm.counter(_request(ClearanceStatus.NEGOTIATING), REQUESTER, "", now=NOW)
    assert excinfo.value.field == "counter_proposal"


def test_accept_sets_finalized_date() -> None:
    request = _request(ClearanceStatus.APPROVED)
    event = sm.accept(request, REQUESTER, now=NOW)
    assert request.status is ClearanceStatus.FINALIZED
    assert request.finalized_date == NOW
    assert event.action is NegotiationAction.ACCEPT


@pytest.mark.parametrize("decision", list(Decision))
def test_requester_cannot_respond(decision: Decision) -> None:
    request = _request()
    with pytest.raises(Unauthorized):
        sm.respond(request, REQUESTER, decision, FULL_TERMS, now=NOW)


def test_rights_holder_cannot_counter_or_accept() -> None:
    with pytest.raises(Unauthorized):
        sm.counter(_request(ClearanceStatus.NEGOTIATING), RIGHTS_HOLDER, "x", now=NOW)
    with pytest.raises(Unauthorized):
        sm.accept(_request(ClearanceStatus.APPROVED), RIGHTS_HOLDER, now=NOW)


def test_stranger_is_unauthorized() -> None:
    with pytest.raises(Unauthorized):
        sm.respond(_request(), uuid4(), Decision.APPROVE, FULL_TERMS, now=NOW)


def test_role_checked_before_status() -> None:
    request = _request(ClearanceStatus.FINALIZED)
    with pytest.raises(Unauthorized):
        sm.respond(request, REQUESTER, Decision.APPROVE, FULL_TERMS, now=NOW)


def test_status_checked_before_fields() -> None:
    request = _request(ClearanceStatus.FINALIZED)
    with pytest.raises(InvalidTransition):
        sm.respond(request, RIGHTS_HOLDER, Decision.APPROVE, Terms(), now=NOW)
