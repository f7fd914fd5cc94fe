from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from uuid import uuid4

import pytest

from cleartone.config import MatchingConfig
from cleartone.domain.errors import NoCandidates
from cleartone.domain.matching import Candidate, CandidateMatch, CandidateMatcher
from tests.helpers.clearance import flip_bits, make_fingerprint

A = uuid4()
B = uuid4()
C = uuid4()


def _scripted(scores: dict[str, float]):  # noqa: ANN202
    """Comparator returning a fixed score per candidate token."""

    def compare(_derivative: object, candidate: object) -> float:
        return scores[str(candidate)]

    return compare


def test_empty_pool_raises() -> None:
    with pytest.raises(NoCandidates):
        CandidateMatcher().match(make_fingerprint(1), [])


def test_below_threshold_is_filtered() -> None:
    matcher = CandidateMatcher(comparator=_scripted({"a": 0.9, "b": 0.3}))
    matches = matcher.match("1", [(A, "a"), (B, "b")])
    assert matches == [CandidateMatch(A, 0.9)]


def test_all_below_threshold_returns_empty() -> None:
    matcher = CandidateMatcher(comparator=_scripted({"a": 0.2, "b": 0.49}))
    assert matcher.match("1", [Candidate(A, "a"), Candidate(B, "b")]) == []


def test_threshold_is_inclusive_and_tunable() -> None:
    matcher = CandidateMatcher(min_confidence=0.3, comparator=_scripted({"a": 0.3, "b": 0.29}))
    assert matcher.match("1", [(A, "a"), (B, "b")]) == [CandidateMatch(A, 0.3)]


def test_orders_descending_with_stable_ties() -> None:
    matcher = CandidateMatcher(comparator=_scripted({"a": 0.7, "b": 0.9, "c": 0.7}))
    matches = matcher.match("1", [(A, "a"), (B, "b"), (C, "c")])
    assert [match.work_id for match in matches] == [B, A, C]


def test_truncates_to_max_results() -> None:
    ids = [uuid4() for _ in range(5)]
    matcher = CandidateMatcher(max_results=2, comparator=lambda _a, _b: 0.8)
    matches = matcher.match("1", [(work_id, "1") for work_id in ids])
    assert [match.work_id for match in matches] == ids[:2]


def test_real_comparator_ranks_closest_first() -> None:
    original = make_fingerprint(9)
    near = flip_bits(original, 2)
    farther = flip_bits(original, 6)
    unrelated = make_fingerprint(99)

    matches = CandidateMatcher().match(
        original, [(A, farther), (B, unrelated), (C, near)]
    )

    assert [match.work_id for match in matches] == [C, A]
    assert matches[0].confidence > matches[1].confidence


def test_executor_results_match_sequential() -> None:
    derivative = make_fingerprint(20)
    pool = [(uuid4(), flip_bits(derivative, bits)) for bits in (1, 7, 3, 3, 12, 0)]

    sequential = CandidateMatcher().match(derivative, pool)
    with ThreadPoolExecutor(max_workers=3) as executor:
        parallel = CandidateMatcher(executor=executor).match(derivative, pool)

    assert parallel == sequential


def test_from_config() -> None:
    matcher = CandidateMatcher.from_config(MatchingConfig(min_confidence=0.8, max_results=3))
    assert matcher.min_confidence == 0.8
    assert matcher.max_results == 3


@pytest.mark.parametrize(("min_confidence", "max_results"), [(-0.1, 10), (1.1, 10), (0.5, 0)])
def test_invalid_parameters_rejected(min_confidence: float, max_results: int) -> None:
    with pytest.raises(ValueError):  # noqa: PT011
        CandidateMatcher(min_confidence=min_confidence, max_results=max_results)


def test_out_of_range_comparator_result_rejected() -> None:
    matcher = CandidateMatcher(comparator=lambda _a, _b: 1.5)
    with pytest.raises(ValueError, match="expected a value within"):
        matcher.match("1", [(A, "2")])
