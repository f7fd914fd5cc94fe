"""SQLAlchemy mapping metadata for the Cleartone domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from cleartone.domain.model import (
    ClearanceRequest,
    ClearanceStatus,
    DerivativeWork,
    NegotiationAction,
    NegotiationEvent,
    OriginalWork,
    Party,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Tables ----------------------------------------------------------------------

party_table = Table(
    "party",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("display_name", String, nullable=False),
    Column("email", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)


def _work_columns() -> list[Column[Any]]:
    return [
        Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
        Column("title", String, nullable=False),
        Column("artist", String, nullable=False),
        Column("owner_id", UUIDColumnType, ForeignKey("party.id"), nullable=False, index=True),
        Column("fingerprint_token", Text, nullable=False),
        Column("duration_seconds", Float, nullable=True),
        Column("registered_at", UTCDateTime(), nullable=False),
    ]


original_work_table = Table("original_work", mapper_registry.metadata, *_work_columns())

derivative_work_table = Table("derivative_work", mapper_registry.metadata, *_work_columns())

clearance_request_table = Table(
    "clearance_request",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "derivative_work_id",
        UUIDColumnType,
        ForeignKey("derivative_work.id"),
        nullable=False,
    ),
    Column(
        "original_work_id",
        UUIDColumnType,
        ForeignKey("original_work.id"),
        nullable=False,
    ),
    Column("requester_id", UUIDColumnType, ForeignKey("party.id"), nullable=False),
    Column("rights_holder_id", UUIDColumnType, ForeignKey("party.id"), nullable=False),
    Column("status", Enum(ClearanceStatus, native_enum=False), nullable=False),
    Column("usage_description", Text, nullable=False),
    Column("terms_of_use", Text, nullable=True),
    Column("royalty_percentage", Float, nullable=True),
    Column("counter_proposal", Text, nullable=True),
    Column("notes", Text, nullable=True),
    Column("match_confidence", Float, nullable=True),
    Column("request_date", UTCDateTime(), nullable=False),
    Column("response_date", UTCDateTime(), nullable=True),
    Column("counter_date", UTCDateTime(), nullable=True),
    Column("finalized_date", UTCDateTime(), nullable=True),
    Column("version", Integer, nullable=False),
    Index("ix_clearance_request_requester_id", "requester_id"),
    Index("ix_clearance_request_rights_holder_id", "rights_holder_id"),
)

negotiation_event_table = Table(
    "negotiation_event",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "request_id",
        UUIDColumnType,
        ForeignKey("clearance_request.id"),
        nullable=False,
        index=True,
    ),
    Column("action", Enum(NegotiationAction, native_enum=False), nullable=False),
    Column("actor_id", UUIDColumnType, ForeignKey("party.id"), nullable=False),
    Column("from_status", Enum(ClearanceStatus, native_enum=False), nullable=True),
    Column("to_status", Enum(ClearanceStatus, native_enum=False), nullable=False),
    Column("version", Integer, nullable=False),
    Column("occurred_at", UTCDateTime(), nullable=False),
    Column("terms_of_use", Text, nullable=True),
    Column("royalty_percentage", Float, nullable=True),
    Column("counter_proposal", Text, nullable=True),
    Column("notes", Text, nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Map domain dataclasses onto their tables (idempotent)."""

    mapper_registry.map_imperatively(Party, party_table)
    mapper_registry.map_imperatively(OriginalWork, original_work_table)
    mapper_registry.map_imperatively(DerivativeWork, derivative_work_table)
    mapper_registry.map_imperatively(
        ClearanceRequest,
        clearance_request_table,
        # the repository sets the next version itself; the mapper adds
        # "WHERE version = <loaded>" to every UPDATE and raises StaleDataError
        version_id_col=clearance_request_table.c.version,
        version_id_generator=False,
    )
    mapper_registry.map_imperatively(NegotiationEvent, negotiation_event_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
