"""Parties: the identities that own works and negotiate clearances."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from cleartone.domain.errors import ValidationError
from cleartone.domain.model.entity import Entity, utcnow
from cleartone.domain.model.enums import EntityType

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class Party(Entity):
    """A person or organisation.

    Parties carry no global role: whether a party acts as requester or rights
    holder is decided per clearance request.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PARTY

    display_name: str
    email: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.display_name or not self.display_name.strip():
            raise ValidationError("display name is required", field="display_name")
