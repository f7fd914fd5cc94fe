"""Identity port: who is calling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class Caller:
    id: UUID
    display_name: str


@runtime_checkable
class IdentityProvider(Protocol):
    """Resolves an opaque credential; raises ``Unauthorized`` when unknown."""

    def resolve_caller(self, credential: str) -> Caller: ...


__all__ = ["Caller", "IdentityProvider"]
