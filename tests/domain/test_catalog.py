from __future__ import annotations

from uuid import uuid4

import pytest

from cleartone.domain.catalog import CatalogService, candidate_pool
from cleartone.domain.errors import (
    ExtractionFailed,
    NoCandidates,
    NotFound,
    Unauthorized,
    ValidationError,
)
from cleartone.domain.model import ClearanceRequest, DerivativeWork, OriginalWork, Party
from tests.helpers.clearance import (
    FakeExtractor,
    FakeLookup,
    FakeUnitOfWorkFactory,
    StepClock,
    flip_bits,
    make_fingerprint,
)


@pytest.fixture
def extractor() -> FakeExtractor:
    base = make_fingerprint(7)
    fake = FakeExtractor()
    fake.register(b"original", base, compressed="AQAA-original")
    fake.register(b"sample", flip_bits(base, 1), duration_seconds=30.0, compressed="AQAA-sample")
    fake.register(b"unrelated", make_fingerprint(99), compressed="AQAA-unrelated")
    return fake


@pytest.fixture
def catalog(
    fake_uow_factory: FakeUnitOfWorkFactory, extractor: FakeExtractor, clock: StepClock
) -> CatalogService:
    return CatalogService(unit_of_work_factory=fake_uow_factory, extractor=extractor, clock=clock)


def test_create_party(catalog: CatalogService, fake_uow_factory: FakeUnitOfWorkFactory) -> None:
    party = catalog.create_party("Label Records", "rights@example.com")

    assert fake_uow_factory.repositories.parties.get(party.id) is party
    assert fake_uow_factory.opened[-1].committed


def test_create_party_requires_name(catalog: CatalogService) -> None:
    with pytest.raises(ValidationError) as excinfo:
        catalog.create_party("  ")
    assert excinfo.value.field == "display_name"


def test_register_works(catalog: CatalogService, fake_uow_factory: FakeUnitOfWorkFactory) -> None:
    holder = catalog.create_party("Label Records")
    producer = catalog.create_party("Beat Maker")

    original = catalog.register_original_work(
        holder.id, title="Original Groove", artist="The Originals", audio=b"original"
    )
    derivative = catalog.register_derivative_work(
        producer.id, title="Flipped", artist="Beat Maker", audio=b"sample"
    )

    repositories = fake_uow_factory.repositories
    assert repositories.original_works.get(original.id) is original
    assert repositories.derivative_works.get(derivative.id) is derivative
    assert derivative.duration_seconds == 30.0
    assert original.fingerprint == make_fingerprint(7)


def test_register_requires_known_owner(catalog: CatalogService) -> None:
    with pytest.raises(ValidationError) as excinfo:
        catalog.register_original_work(uuid4(), title="T", artist="A", audio=b"original")
    assert excinfo.value.field == "owner_id"


def test_register_unreadable_audio(catalog: CatalogService) -> None:
    holder = catalog.create_party("Label Records")
    with pytest.raises(ExtractionFailed):
        catalog.register_original_work(holder.id, title="T", artist="A", audio=b"noise")


def test_compare_audio(catalog: CatalogService) -> None:
    similar = catalog.compare_audio(b"original", b"sample")
    assert similar.is_match
    assert similar.confidence == pytest.approx(1 - 1 / 16)
    assert similar.matching_ids == frozenset()
    assert similar.identifier_confidence is None

    different = catalog.compare_audio(b"original", b"unrelated")
    assert not different.is_match
    assert different.confidence < 0.5


def test_compare_audio_with_identifier_lookup(
    fake_uow_factory: FakeUnitOfWorkFactory, extractor: FakeExtractor
) -> None:
    lookup = FakeLookup(
        {
            "AQAA-original": frozenset({"rec-1", "rec-2"}),
            "AQAA-sample": frozenset({"rec-2", "rec-3"}),
        }
    )
    catalog = CatalogService(
        unit_of_work_factory=fake_uow_factory, extractor=extractor, lookup=lookup
    )

    comparison = catalog.compare_audio(b"original", b"sample")

    assert comparison.matching_ids == frozenset({"rec-2"})
    assert comparison.identifier_confidence == pytest.approx(1 / 3)
    assert lookup.calls == [("AQAA-original", 180.0), ("AQAA-sample", 30.0)]


def test_candidate_pool_excludes_owner_and_keeps_registration_order(clock: StepClock) -> None:
    mine, theirs = uuid4(), uuid4()
    earlier = OriginalWork(
        title="A", artist="X", owner_id=theirs, fingerprint_token="1", registered_at=clock()
    )
    later = OriginalWork(
        title="B", artist="X", owner_id=theirs, fingerprint_token="2", registered_at=clock()
    )
    own = OriginalWork(
        title="C", artist="X", owner_id=mine, fingerprint_token="3", registered_at=clock()
    )

    pool = candidate_pool([later, own, earlier], exclude_owner=mine)

    assert [candidate.work_id for candidate in pool] == [earlier.id, later.id]


def test_identifier_confidence_needs_ids_on_both_sides(
    fake_uow_factory: FakeUnitOfWorkFactory, extractor: FakeExtractor
) -> None:
    lookup = FakeLookup({"AQAA-original": frozenset({"rec-1"})})
    catalog = CatalogService(
        unit_of_work_factory=fake_uow_factory, extractor=extractor, lookup=lookup
    )

    comparison = catalog.compare_audio(b"original", b"unrelated")

    assert comparison.identifier_confidence is None
    assert comparison.matching_ids == frozenset()


@pytest.fixture
def registered(catalog: CatalogService) -> tuple[Party, Party, OriginalWork, DerivativeWork]:
    holder = catalog.create_party("Label Records")
    producer = catalog.create_party("Beat Maker")
    original = catalog.register_original_work(
        holder.id, title="Original Groove", artist="The Originals", audio=b"original"
    )
    derivative = catalog.register_derivative_work(
        producer.id, title="Flipped", artist="Beat Maker", audio=b"sample"
    )
    return holder, producer, original, derivative


def test_list_original_works_newest_first(
    catalog: CatalogService, registered: tuple[Party, Party, OriginalWork, DerivativeWork]
) -> None:
    holder, _, original, _ = registered
    newer = catalog.register_original_work(
        holder.id, title="Second Groove", artist="The Originals", audio=b"unrelated"
    )

    assert [work.id for work in catalog.list_original_works()] == [newer.id, original.id]


def test_list_derivative_works_only_returns_own(
    catalog: CatalogService, registered: tuple[Party, Party, OriginalWork, DerivativeWork]
) -> None:
    holder, producer, _, derivative = registered

    assert [work.id for work in catalog.list_derivative_works(producer.id)] == [derivative.id]
    assert catalog.list_derivative_works(holder.id) == []


def test_get_work_visibility(
    catalog: CatalogService,
    registered: tuple[Party, Party, OriginalWork, DerivativeWork],
    fake_uow_factory: FakeUnitOfWorkFactory,
) -> None:
    holder, producer, original, derivative = registered
    stranger = catalog.create_party("Someone Else")

    assert catalog.get_work(original.id, stranger.id) is original
    assert catalog.get_work(derivative.id, producer.id) is derivative
    with pytest.raises(Unauthorized):
        catalog.get_work(derivative.id, holder.id)
    with pytest.raises(NotFound):
        catalog.get_work(uuid4(), producer.id)

    fake_uow_factory.repositories.requests.create(
        ClearanceRequest(
            derivative_work_id=derivative.id,
            original_work_id=original.id,
            requester_id=producer.id,
            rights_holder_id=holder.id,
            usage_description="album use",
        )
    )
    assert catalog.get_work(derivative.id, holder.id) is derivative
    with pytest.raises(Unauthorized):
        catalog.get_work(derivative.id, stranger.id)


def test_match_audio_ranks_without_storing(
    catalog: CatalogService,
    registered: tuple[Party, Party, OriginalWork, DerivativeWork],
    fake_uow_factory: FakeUnitOfWorkFactory,
) -> None:
    holder, producer, original, _ = registered
    repositories = fake_uow_factory.repositories
    originals = set(repositories.original_works.items)
    derivatives = set(repositories.derivative_works.items)

    matches = catalog.match_audio(b"sample", caller_id=producer.id)

    assert [match.work_id for match in matches] == [original.id]
    assert matches[0].confidence == pytest.approx(1 - 1 / 16)
    assert set(repositories.original_works.items) == originals
    assert set(repositories.derivative_works.items) == derivatives
    # the caller's own originals are not candidates
    with pytest.raises(NoCandidates):
        catalog.match_audio(b"sample", caller_id=holder.id)


@pytest.mark.usefixtures("registered")
def test_match_audio_below_threshold_is_empty(catalog: CatalogService) -> None:
    assert catalog.match_audio(b"unrelated") == []
