from __future__ import annotations

from uuid import uuid4

import pytest

from cleartone.domain.errors import InvalidFingerprint, ValidationError
from cleartone.domain.model import (
    ClearanceRequest,
    ClearanceStatus,
    EntityType,
    OriginalWork,
    Party,
    PartyRole,
)


def _request(**overrides: object) -> ClearanceRequest:
    values: dict[str, object] = {
        "derivative_work_id": uuid4(),
        "original_work_id": uuid4(),
        "requester_id": uuid4(),
        "rights_holder_id": uuid4(),
        "usage_description": "album use",
    }
    values.update(overrides)
    return ClearanceRequest(**values)  # type: ignore[arg-type]


def test_new_request_defaults() -> None:
    request = _request()
    assert request.status is ClearanceStatus.PENDING
    assert request.version == 1
    assert request.response_date is None
    assert request.counter_date is None
    assert request.finalized_date is None
    assert request.entity_type is EntityType.CLEARANCE_REQUEST
    assert not request.is_terminal


def test_request_requires_distinct_parties() -> None:
    party = uuid4()
    with pytest.raises(ValidationError) as excinfo:
        _request(requester_id=party, rights_holder_id=party)
    assert excinfo.value.field == "rights_holder_id"


@pytest.mark.parametrize("usage", ["", "   "])
def test_request_requires_usage(usage: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        _request(usage_description=usage)
    assert excinfo.value.field == "usage_description"


@pytest.mark.parametrize(
    ("field_name", "value"),
    [
        ("royalty_percentage", -0.1),
        ("royalty_percentage", 100.5),
        ("match_confidence", 1.2),
        ("match_confidence", -0.01),
    ],
)
def test_request_range_checks(field_name: str, value: float) -> None:
    with pytest.raises(ValidationError) as excinfo:
        _request(**{field_name: value})
    assert excinfo.value.field == field_name


def test_role_is_resolved_per_request() -> None:
    requester = uuid4()
    rights_holder = uuid4()
    request = _request(requester_id=requester, rights_holder_id=rights_holder)

    assert request.role_of(requester) is PartyRole.REQUESTER
    assert request.role_of(rights_holder) is PartyRole.RIGHTS_HOLDER
    assert request.role_of(uuid4()) is None
    assert request.involves(rights_holder)


def test_party_requires_display_name() -> None:
    with pytest.raises(ValidationError):
        Party(display_name=" ")


def test_work_normalises_fingerprint_token() -> None:
    work = OriginalWork(
        title="Song",
        artist="Artist",
        owner_id=uuid4(),
        fingerprint_token=" 1, 2 ,3",
    )
    assert work.fingerprint_token == "1,2,3"
    assert work.fingerprint.values == (1, 2, 3)


def test_work_rejects_malformed_fingerprint() -> None:
    with pytest.raises(InvalidFingerprint):
        OriginalWork(title="Song", artist="Artist", owner_id=uuid4(), fingerprint_token="x")


def test_work_rejects_negative_duration() -> None:
    with pytest.raises(ValidationError) as excinfo:
        OriginalWork(
            title="Song",
            artist="Artist",
            owner_id=uuid4(),
            fingerprint_token="1",
            duration_seconds=-1,
        )
    assert excinfo.value.field == "duration_seconds"
