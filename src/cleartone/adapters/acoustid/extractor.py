"""Chromaprint-backed fingerprint extraction via pyacoustid."""

from __future__ import annotations

import tempfile
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

import acoustid

from cleartone.domain.errors import ExtractionFailed, InvalidFingerprint
from cleartone.domain.model import Fingerprint
from cleartone.domain.model.fingerprint import MAX_SUBFINGERPRINT
from cleartone.domain.ports import ExtractedAudio

if TYPE_CHECKING:
    from collections.abc import Callable

    type FingerprintFile = Callable[[str], tuple[float, bytes | str]]
    type DecodeFingerprint = Callable[[bytes], tuple[list[int], int]]

log = getLogger(__name__)


def _decode_with_chromaprint(compressed: bytes) -> tuple[list[int], int]:
    # chromaprint loads libchromaprint through ctypes at import time
    import chromaprint  # noqa: PLC0415

    return chromaprint.decode_fingerprint(compressed)


class ChromaprintExtractor:
    """Writes the payload to a temporary file and fingerprints it.

    ``fingerprint_file`` and ``decode`` default to pyacoustid's
    ``acoustid.fingerprint_file`` and ``chromaprint.decode_fingerprint``.
    """

    def __init__(
        self,
        *,
        fingerprint_file: FingerprintFile | None = None,
        decode: DecodeFingerprint | None = None,
        suffix: str = ".audio",
    ) -> None:
        self._fingerprint_file = fingerprint_file or acoustid.fingerprint_file
        self._decode = decode or _decode_with_chromaprint
        self._suffix = suffix

    def extract(self, audio: bytes) -> ExtractedAudio:
        if not audio:
            raise ExtractionFailed("audio payload is empty", field="audio")

        with tempfile.TemporaryDirectory(prefix="cleartone-") as workdir:
            path = Path(workdir) / f"payload{self._suffix}"
            path.write_bytes(audio)
            try:
                duration, compressed = self._fingerprint_file(str(path))
            except acoustid.FingerprintGenerationError as exc:
                log.warning("Fingerprint generation failed: %s", exc)
                raise ExtractionFailed(f"audio could not be fingerprinted: {exc}") from exc

        encoded = compressed.encode("ascii") if isinstance(compressed, str) else compressed
        try:
            raw, _algorithm = self._decode(encoded)
        except (OSError, ValueError, TypeError) as exc:
            raise ExtractionFailed(f"fingerprint could not be decoded: {exc}") from exc

        try:
            # chromaprint hands back signed 32-bit integers
            fingerprint = Fingerprint.from_values(value & MAX_SUBFINGERPRINT for value in raw)
        except InvalidFingerprint as exc:
            raise ExtractionFailed(f"extractor produced no fingerprint: {exc.message}") from exc

        return ExtractedAudio(
            fingerprint=fingerprint,
            duration_seconds=float(duration),
            compressed=encoded.decode("ascii"),
        )
