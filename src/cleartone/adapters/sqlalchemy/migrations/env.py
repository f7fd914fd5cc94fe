"""Alembic environment for the clearance schema."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from alembic import context
from sqlalchemy import create_engine, pool

from cleartone.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from cleartone.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

start_mappers()


def _options() -> dict[str, Any]:
    # batch mode lets SQLite rebuild tables for ALTERs it cannot run in place
    return {
        "target_metadata": mapper_registry.metadata,
        "render_as_batch": True,
        "compare_type": True,
    }


def _url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_options())
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    context.configure(url=_url(), literal_binds=True, **_options())
    with context.begin_transaction():
        context.run_migrations()
elif (shared := context.config.attributes.get("connection")) is not None:
    _migrate(shared)
else:
    engine = create_engine(_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()
