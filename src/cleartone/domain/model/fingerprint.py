"""Acoustic fingerprint value object.

A fingerprint token is the Chromaprint *raw* representation of an audio
signal: one unsigned 32-bit sub-fingerprint per analysis frame, rendered as a
comma-separated list (the format ``fpcalc -raw`` prints). The core treats the
values as opaque beyond bitwise comparison.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from cleartone.domain.errors import InvalidFingerprint

if TYPE_CHECKING:
    from collections.abc import Iterable

SUBFINGERPRINT_BITS: Final[int] = 32
MAX_SUBFINGERPRINT: Final[int] = (1 << SUBFINGERPRINT_BITS) - 1
TOKEN_SEPARATOR: Final[str] = ","


@dataclass(frozen=True, slots=True)
class Fingerprint:
    values: tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.values:
            raise InvalidFingerprint("fingerprint is empty")
        for position, value in enumerate(self.values):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidFingerprint(f"sub-fingerprint {position} is not an integer")
            if not 0 <= value <= MAX_SUBFINGERPRINT:
                raise InvalidFingerprint(
                    f"sub-fingerprint {position} is outside the unsigned 32-bit range"
                )

    @classmethod
    def parse(cls, token: str) -> Fingerprint:
        if not isinstance(token, str) or not token.strip():
            raise InvalidFingerprint("fingerprint token is empty")
        values: list[int] = []
        for part in token.split(TOKEN_SEPARATOR):
            digits = part.strip()
            # plain ASCII decimals only; int() would also take "+5", "1_000" or "٣"
            if not (digits.isascii() and digits.isdigit()):
                raise InvalidFingerprint(f"malformed sub-fingerprint {part!r}")
            values.append(int(digits))
        return cls(tuple(values))

    @classmethod
    def from_values(cls, values: Iterable[int]) -> Fingerprint:
        return cls(tuple(values))

    @property
    def token(self) -> str:
        return TOKEN_SEPARATOR.join(str(value) for value in self.values)

    def __len__(self) -> int:
        return len(self.values)
