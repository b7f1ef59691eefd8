"""Alembic environment for the canonical product store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from stockbridge.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from stockbridge.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

# the store may live in a database shared with the storefront tooling
VERSION_TABLE = "stockbridge_alembic_version"

config = context.config

if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

start_mappers()

target_metadata = mapper_registry.metadata
_options = {
    "target_metadata": target_metadata,
    "version_table": VERSION_TABLE,
    "render_as_batch": True,
    "compare_type": True,
}


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_options)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit the migration SQL for ``alembic upgrade --sql``."""

    context.configure(url=_database_url(), literal_binds=True, **_options)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrate through the caller's connection, or a throwaway engine when there is none."""

    shared: Connection | None = config.attributes.get("connection")
    if shared is not None:
        _migrate(shared)
        return

    engine = create_engine(_database_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
