"""Audio works referenced by clearance requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from cleartone.domain.errors import ValidationError
from cleartone.domain.model.entity import Entity, utcnow
from cleartone.domain.model.enums import EntityType
from cleartone.domain.model.fingerprint import Fingerprint

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Work(Entity):
    """Shared shape of original and derivative works."""

    title: str
    artist: str
    owner_id: UUID
    fingerprint_token: str
    duration_seconds: float | None = None
    registered_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("title is required", field="title")
        if not self.artist or not self.artist.strip():
            raise ValidationError("artist is required", field="artist")
        if self.duration_seconds is not None and self.duration_seconds < 0:
            raise ValidationError("duration must be non-negative", field="duration_seconds")
        # normalise and reject malformed tokens up front
        self.fingerprint_token = Fingerprint.parse(self.fingerprint_token).token

    @property
    def fingerprint(self) -> Fingerprint:
        return Fingerprint.parse(self.fingerprint_token)


@dataclass(eq=False, kw_only=True)
class OriginalWork(Work):
    """A work whose owner (``owner_id``) is the rights holder for clearances."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ORIGINAL_WORK


@dataclass(eq=False, kw_only=True)
class DerivativeWork(Work):
    """A submitted work that samples or otherwise derives from an original."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.DERIVATIVE_WORK
