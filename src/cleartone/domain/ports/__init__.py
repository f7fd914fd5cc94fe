"""Domain port definitions for adapters."""

from __future__ import annotations

from .fingerprinting import ExtractedAudio, FingerprintExtractor, IdentifierLookup
from .identity import Caller, IdentityProvider
from .persistence import (
    ClearanceRequestRepository,
    DerivativeWorkRepository,
    NegotiationEventRepository,
    OriginalWorkRepository,
    PartyRepository,
    Repository,
)
from .unit_of_work import (
    ClearanceRepositories,
    ClearanceUnitOfWork,
    ClearanceUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "Caller",
    "ClearanceRepositories",
    "ClearanceRequestRepository",
    "ClearanceUnitOfWork",
    "ClearanceUnitOfWorkFactory",
    "DerivativeWorkRepository",
    "ExtractedAudio",
    "FingerprintExtractor",
    "IdentifierLookup",
    "IdentityProvider",
    "NegotiationEventRepository",
    "OriginalWorkRepository",
    "PartyRepository",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
