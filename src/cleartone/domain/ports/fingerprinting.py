"""Ports for audio fingerprint extraction and external lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cleartone.domain.model import Fingerprint


@dataclass(frozen=True, slots=True)
class ExtractedAudio:
    """Result of fingerprinting one audio payload.

    ``compressed`` is the encoded form some lookup services expect; extractors
    that cannot produce it leave it unset.
    """

    fingerprint: Fingerprint
    duration_seconds: float
    compressed: str | None = None


@runtime_checkable
class FingerprintExtractor(Protocol):
    """Turns raw audio bytes into a fingerprint; raises ``ExtractionFailed``."""

    def extract(self, audio: bytes) -> ExtractedAudio: ...


@runtime_checkable
class IdentifierLookup(Protocol):
    """Resolves a compressed fingerprint to external recording identifiers."""

    def lookup(self, compressed_fingerprint: str, duration_seconds: float) -> frozenset[str]: ...


__all__ = ["ExtractedAudio", "FingerprintExtractor", "IdentifierLookup"]
