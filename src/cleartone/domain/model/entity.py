"""Identity shared by every persisted domain object."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from cleartone.domain.model.enums import EntityType


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Carries a UUID assigned at construction, before anything is stored.

    Equality stays object identity so the ORM identity map can track instances.
    """

    ENTITY_TYPE: ClassVar[EntityType]

    id: UUID = field(default_factory=uuid4)

    @property
    def entity_type(self) -> EntityType:
        return type(self).ENTITY_TYPE
