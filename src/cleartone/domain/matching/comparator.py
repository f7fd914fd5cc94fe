"""Fingerprint comparison.

Scoring policy: the shorter fingerprint is slid across the longer one, one
frame at a time, and the best-aligned window's bit similarity decides the
score. Unrelated audio agrees on about half of all bits, so similarity is
rescaled against that baseline: 0.5 maps to 0 confidence, 1.0 (bit-identical
at some offset) maps to 1.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Final

from cleartone.domain.errors import InvalidFingerprint
from cleartone.domain.model.fingerprint import SUBFINGERPRINT_BITS, Fingerprint

BASELINE_SIMILARITY: Final[float] = 0.5

type FingerprintLike = Fingerprint | str
type Comparator = Callable[[FingerprintLike, FingerprintLike], float]


def coerce_fingerprint(value: FingerprintLike) -> Fingerprint:
    if isinstance(value, Fingerprint):
        return value
    if isinstance(value, str):
        return Fingerprint.parse(value)
    raise InvalidFingerprint(f"unsupported fingerprint value of type {type(value).__name__}")


def compare_fingerprints(a: FingerprintLike, b: FingerprintLike) -> float:
    """Return the confidence in [0, 1] that ``a`` and ``b`` share audio content."""

    left = coerce_fingerprint(a).values
    right = coerce_fingerprint(b).values
    # canonical order makes the result independent of argument order
    shorter, longer = sorted((left, right), key=lambda values: (len(values), values))

    window = len(shorter)
    best = 0.0
    for offset in range(len(longer) - window + 1):
        similarity = _bit_similarity(shorter, longer[offset : offset + window])
        if similarity > best:
            best = similarity
            if best == 1.0:
                break
    return _rescale(best)


def compare_identifier_sets(a: Iterable[str], b: Iterable[str]) -> float:
    """Jaccard overlap of two identifier sets returned by an external lookup."""

    left = frozenset(a)
    right = frozenset(b)
    if not left or not right:
        raise InvalidFingerprint("identifier set is empty")
    return len(left & right) / len(left | right)


def _bit_similarity(first: tuple[int, ...], second: tuple[int, ...]) -> float:
    differing = sum((x ^ y).bit_count() for x, y in zip(first, second, strict=True))
    return 1.0 - differing / (SUBFINGERPRINT_BITS * len(first))


def _rescale(similarity: float) -> float:
    scaled = (similarity - BASELINE_SIMILARITY) / (1.0 - BASELINE_SIMILARITY)
    return min(1.0, max(0.0, scaled))
