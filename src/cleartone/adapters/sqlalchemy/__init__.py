"""SQLAlchemy adapter package for Cleartone."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyClearanceRequestRepository,
    SqlAlchemyDerivativeWorkRepository,
    SqlAlchemyNegotiationEventRepository,
    SqlAlchemyOriginalWorkRepository,
    SqlAlchemyPartyRepository,
    translate_storage_errors,
)

__all__ = [
    "SqlAlchemyClearanceRequestRepository",
    "SqlAlchemyDerivativeWorkRepository",
    "SqlAlchemyNegotiationEventRepository",
    "SqlAlchemyOriginalWorkRepository",
    "SqlAlchemyPartyRepository",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
    "translate_storage_errors",
]
