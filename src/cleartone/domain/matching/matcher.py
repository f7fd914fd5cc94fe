"""Rank candidate original works against a derivative fingerprint."""

from __future__ import annotations

from itertools import repeat
from logging import getLogger
from typing import TYPE_CHECKING, NamedTuple

from cleartone.config.matching import DEFAULT_MAX_RESULTS, DEFAULT_MIN_CONFIDENCE
from cleartone.domain.errors import NoCandidates

from .comparator import compare_fingerprints, coerce_fingerprint

if TYPE_CHECKING:
    from collections.abc import Iterable
    from concurrent.futures import Executor
    from uuid import UUID

    from cleartone.config.matching import MatchingConfig

    from .comparator import Comparator, FingerprintLike

log = getLogger(__name__)


class Candidate(NamedTuple):
    work_id: UUID
    fingerprint: FingerprintLike


class CandidateMatch(NamedTuple):
    work_id: UUID
    confidence: float


class CandidateMatcher:
    """Score, filter, order and truncate candidates.

    ``min_confidence`` and ``max_results`` are tunable; ties keep the order in
    which candidates were supplied. An ``executor`` spreads comparisons across
    workers, results are merged back in candidate order before ranking.
    """

    def __init__(
        self,
        *,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        max_results: int = DEFAULT_MAX_RESULTS,
        comparator: Comparator = compare_fingerprints,
        executor: Executor | None = None,
    ) -> None:
        if not 0.0 <= min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be within [0, 1], got {min_confidence}")
        if max_results < 1:
            raise ValueError(f"max_results must be at least 1, got {max_results}")
        self.min_confidence = min_confidence
        self.max_results = max_results
        self._comparator = comparator
        self._executor = executor

    @classmethod
    def from_config(
        cls,
        config: MatchingConfig,
        *,
        comparator: Comparator = compare_fingerprints,
        executor: Executor | None = None,
    ) -> CandidateMatcher:
        return cls(
            min_confidence=config.min_confidence,
            max_results=config.max_results,
            comparator=comparator,
            executor=executor,
        )

    def match(
        self,
        derivative_fingerprint: FingerprintLike,
        candidates: Iterable[Candidate | tuple[UUID, FingerprintLike]],
    ) -> list[CandidateMatch]:
        pool = [Candidate(*candidate) for candidate in candidates]
        if not pool:
            raise NoCandidates("candidate pool is empty")
        derivative = coerce_fingerprint(derivative_fingerprint)

        scores = self._score(derivative, pool)
        surviving = [
            CandidateMatch(candidate.work_id, score)
            for candidate, score in zip(pool, scores, strict=True)
            if score >= self.min_confidence
        ]
        # sorted() is stable, so equal confidences keep candidate order
        ranked = sorted(surviving, key=lambda match: match.confidence, reverse=True)
        log.debug(
            "Matched %s candidates: %s above %.2f, returning %s",
            len(pool),
            len(ranked),
            self.min_confidence,
            min(len(ranked), self.max_results),
        )
        return ranked[: self.max_results]

    def _score(self, derivative: FingerprintLike, pool: list[Candidate]) -> list[float]:
        fingerprints = [candidate.fingerprint for candidate in pool]
        if self._executor is None:
            scores = [self._comparator(derivative, fingerprint) for fingerprint in fingerprints]
        else:
            scores = list(self._executor.map(self._comparator, repeat(derivative), fingerprints))
        for candidate, score in zip(pool, scores, strict=True):
            if not 0.0 <= score <= 1.0:
                raise ValueError(
                    f"comparator returned {score} for candidate {candidate.work_id}, "
                    "expected a value within [0, 1]"
                )
        return scores
