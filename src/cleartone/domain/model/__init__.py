"""Public domain model surface."""

from __future__ import annotations

from cleartone.domain.model.clearance import ClearanceRequest, NegotiationEvent
from cleartone.domain.model.entity import Entity, utcnow
from cleartone.domain.model.enums import (
    ClearanceStatus,
    Decision,
    EntityType,
    NegotiationAction,
    PartyRole,
)
from cleartone.domain.model.fingerprint import Fingerprint
from cleartone.domain.model.party import Party
from cleartone.domain.model.works import DerivativeWork, OriginalWork, Work

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "utcnow",
    # parties and works
    "Party",
    "Work",
    "OriginalWork",
    "DerivativeWork",
    "Fingerprint",
    # clearance
    "ClearanceRequest",
    "NegotiationEvent",
    # enums
    "ClearanceStatus",
    "Decision",
    "EntityType",
    "NegotiationAction",
    "PartyRole",
]
