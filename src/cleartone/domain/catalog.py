"""Work catalog: parties, registered works and audio comparison."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from cleartone.config.matching import DEFAULT_MIN_CONFIDENCE
from cleartone.domain.errors import NotFound, Unauthorized, ValidationError
from cleartone.domain.matching import (
    Candidate,
    CandidateMatcher,
    compare_fingerprints,
    compare_identifier_sets,
)
from cleartone.domain.model import DerivativeWork, OriginalWork, Party, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime
    from uuid import UUID

    from cleartone.domain.matching import CandidateMatch, Comparator
    from cleartone.domain.model import Work
    from cleartone.domain.ports import (
        ClearanceRepositories,
        ClearanceUnitOfWorkFactory,
        ExtractedAudio,
        FingerprintExtractor,
        IdentifierLookup,
    )

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AudioComparison:
    """Outcome of comparing two audio payloads.

    ``identifier_confidence`` is the overlap of the recording ids a web lookup
    returned for each payload; ``None`` when either lookup was unavailable or
    came back empty.
    """

    is_match: bool
    confidence: float
    matching_ids: frozenset[str]
    identifier_confidence: float | None = None


def candidate_pool(works: Iterable[OriginalWork], *, exclude_owner: UUID) -> list[Candidate]:
    """Original works a party could request clearance for, in registration order."""

    ordered = sorted(works, key=lambda work: work.registered_at)
    return [
        Candidate(work.id, work.fingerprint) for work in ordered if work.owner_id != exclude_owner
    ]


def _newest_first[TWork: Work](works: Iterable[TWork]) -> list[TWork]:
    return sorted(works, key=lambda work: work.registered_at, reverse=True)


class CatalogService:
    def __init__(
        self,
        *,
        unit_of_work_factory: ClearanceUnitOfWorkFactory,
        extractor: FingerprintExtractor,
        lookup: IdentifierLookup | None = None,
        comparator: Comparator = compare_fingerprints,
        matcher: CandidateMatcher | None = None,
        match_threshold: float = DEFAULT_MIN_CONFIDENCE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow = unit_of_work_factory
        self._extractor = extractor
        self._lookup = lookup
        self._comparator = comparator
        self._matcher = matcher or CandidateMatcher(min_confidence=match_threshold)
        self._match_threshold = match_threshold
        self._clock = clock

    def create_party(self, display_name: str, email: str | None = None) -> Party:
        party = Party(display_name=display_name, email=email, created_at=self._clock())
        with self._uow() as uow:
            uow.repositories.parties.add(party)
            uow.commit()
        log.info("Created party %s (%s)", party.id, party.display_name)
        return party

    def register_original_work(
        self, owner_id: UUID, *, title: str, artist: str, audio: bytes
    ) -> OriginalWork:
        """Fingerprint ``audio`` and store it as an original owned by ``owner_id``."""

        extracted = self._extractor.extract(audio)
        work = OriginalWork(
            title=title,
            artist=artist,
            owner_id=owner_id,
            fingerprint_token=extracted.fingerprint.token,
            duration_seconds=extracted.duration_seconds,
            registered_at=self._clock(),
        )
        with self._uow() as uow:
            _require_party(uow.repositories, owner_id)
            uow.repositories.original_works.add(work)
            uow.commit()
        log.info("Registered original work %s for %s", work.id, owner_id)
        return work

    def register_derivative_work(
        self, owner_id: UUID, *, title: str, artist: str, audio: bytes
    ) -> DerivativeWork:
        """Fingerprint ``audio`` and store it as a derivative submitted by ``owner_id``."""

        extracted = self._extractor.extract(audio)
        work = DerivativeWork(
            title=title,
            artist=artist,
            owner_id=owner_id,
            fingerprint_token=extracted.fingerprint.token,
            duration_seconds=extracted.duration_seconds,
            registered_at=self._clock(),
        )
        with self._uow() as uow:
            _require_party(uow.repositories, owner_id)
            uow.repositories.derivative_works.add(work)
            uow.commit()
        log.info("Registered derivative work %s for %s", work.id, owner_id)
        return work

    # ------------------------------------------------------------------
    # reads

    def list_original_works(self) -> list[OriginalWork]:
        """Every registered original, newest first."""

        with self._uow() as uow:
            return _newest_first(uow.repositories.original_works.list_all())

    def list_derivative_works(self, owner_id: UUID) -> list[DerivativeWork]:
        """Derivatives submitted by ``owner_id``, newest first."""

        with self._uow() as uow:
            return _newest_first(uow.repositories.derivative_works.list_for_owner(owner_id))

    def get_work(self, work_id: UUID, caller_id: UUID) -> Work:
        """Load an original or a derivative work.

        Originals form the public catalog. A derivative is visible to its owner
        and to the parties of any clearance request made for it.
        """

        with self._uow() as uow:
            repositories = uow.repositories
            original = repositories.original_works.get(work_id)
            if original is not None:
                return original
            derivative = repositories.derivative_works.get(work_id)
            if derivative is None:
                raise NotFound("work", work_id)
            if derivative.owner_id != caller_id and not any(
                request.derivative_work_id == work_id
                for request in repositories.requests.list_for_party(caller_id)
            ):
                raise Unauthorized(
                    "only the owner or a negotiating party may read a derivative work",
                    field="work_id",
                )
            return derivative

    # ------------------------------------------------------------------
    # audio

    def match_audio(self, audio: bytes, *, caller_id: UUID | None = None) -> list[CandidateMatch]:
        """Rank registered originals against unregistered audio; nothing is stored.

        The caller's own originals are left out of the pool.
        """

        extracted = self._extractor.extract(audio)
        with self._uow() as uow:
            works = uow.repositories.original_works.list_all()
        pool = (
            candidate_pool(works, exclude_owner=caller_id)
            if caller_id is not None
            else [Candidate(work.id, work.fingerprint) for work in works]
        )
        return self._matcher.match(extracted.fingerprint, pool)

    def compare_audio(self, first: bytes, second: bytes) -> AudioComparison:
        left = self._extractor.extract(first)
        right = self._extractor.extract(second)
        confidence = self._comparator(left.fingerprint, right.fingerprint)
        left_ids, right_ids = self._identifiers(left), self._identifiers(right)
        identifier_confidence = (
            compare_identifier_sets(left_ids, right_ids) if left_ids and right_ids else None
        )
        return AudioComparison(
            is_match=confidence >= self._match_threshold,
            confidence=confidence,
            matching_ids=left_ids & right_ids,
            identifier_confidence=identifier_confidence,
        )

    def _identifiers(self, audio: ExtractedAudio) -> frozenset[str]:
        if self._lookup is None or audio.compressed is None:
            return frozenset()
        return self._lookup.lookup(audio.compressed, audio.duration_seconds)


def _require_party(repositories: ClearanceRepositories, party_id: UUID) -> Party:
    party = repositories.parties.get(party_id)
    if party is None:
        raise ValidationError(f"party {party_id} does not exist", field="owner_id")
    return party
