"""Candidate matching thresholds."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float, optional_int
from .errors import ConfigurationError

DEFAULT_MIN_CONFIDENCE = 0.5
DEFAULT_MAX_RESULTS = 10


@dataclass(frozen=True, slots=True)
class MatchingConfig:
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    max_results: int = DEFAULT_MAX_RESULTS

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ConfigurationError(
                f"min_confidence must be within [0, 1], got {self.min_confidence}"
            )
        if self.max_results < 1:
            raise ConfigurationError(f"max_results must be at least 1, got {self.max_results}")


def get_matching_config() -> MatchingConfig:
    return MatchingConfig(
        min_confidence=optional_float("CLEARTONE_MIN_CONFIDENCE", DEFAULT_MIN_CONFIDENCE),
        max_results=optional_int("CLEARTONE_MAX_RESULTS", DEFAULT_MAX_RESULTS),
    )
