"""Candidate matching engine."""

from __future__ import annotations

from .comparator import (
    Comparator,
    FingerprintLike,
    coerce_fingerprint,
    compare_fingerprints,
    compare_identifier_sets,
)
from .matcher import Candidate, CandidateMatch, CandidateMatcher

__all__ = [
    "Candidate",
    "CandidateMatch",
    "CandidateMatcher",
    "Comparator",
    "FingerprintLike",
    "coerce_fingerprint",
    "compare_fingerprints",
    "compare_identifier_sets",
]
