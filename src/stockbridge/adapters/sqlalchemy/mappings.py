"""SQLAlchemy mapping metadata for canonical products and sync runs."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)

from stockbridge.domain.model import (
    CanonicalProduct,
    RunStatus,
    SyncRun,
    SyncSource,
    SyncStatus,
)

log = logging.getLogger(__name__)

AMOUNT = Numeric(18, 4, asdecimal=True)


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


class IdentifierString(TypeDecorator[str]):
    """Trimmed identifier; blank values are stored as NULL so unique keys ignore them."""

    impl = String(128)
    cache_ok = True

    def process_bind_param(self, value: str | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    def process_result_value(self, value: str | None, dialect: Dialect) -> str | None:
        _ = dialect
        return value


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

canonical_product_table = Table(
    "canonical_product",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("store_id", Integer, nullable=False, default=1),
    Column("erp_internal_id", IdentifierString, nullable=True),
    Column("erp_code", IdentifierString, nullable=True),
    Column("barcode", IdentifierString, nullable=True),
    Column("storefront_id", Integer, nullable=True),
    Column("inventory_record_id", Integer, nullable=True),
    Column("sku", IdentifierString, nullable=True),
    Column("name", String(500), nullable=True),
    Column("category", String(255), nullable=True),
    Column("unit", String(64), nullable=True),
    Column("item_group", String(255), nullable=True),
    Column("vat", String(64), nullable=True),
    Column("retail_price", AMOUNT, nullable=True),
    Column("wholesale_price", AMOUNT, nullable=True),
    Column("sale_price", AMOUNT, nullable=True),
    Column("purchase_price", AMOUNT, nullable=True),
    Column("discount", AMOUNT, nullable=True),
    Column("erp_quantity", AMOUNT, nullable=True),
    Column("inventory_quantity", AMOUNT, nullable=True),
    Column("last_synced_at", UTCDateTime(), nullable=True),
    Column("last_sync_status", Enum(SyncStatus, native_enum=False), nullable=True),
    Column("last_sync_source", Enum(SyncSource, native_enum=False), nullable=True),
    Column("last_sync_detail", Text, nullable=True),
    Column("last_sync_error", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    UniqueConstraint("store_id", "sku"),
    UniqueConstraint("store_id", "erp_internal_id"),
    Index("ix_canonical_product_store_erp_code", "store_id", "erp_code"),
    Index("ix_canonical_product_store_barcode", "store_id", "barcode"),
    Index("ix_canonical_product_store_storefront_id", "store_id", "storefront_id"),
    Index("ix_canonical_product_store_inventory_record_id", "store_id", "inventory_record_id"),
)

sync_run_table = Table(
    "sync_run",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("store_id", Integer, nullable=False, default=1),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("status", Enum(RunStatus, native_enum=False), nullable=False),
    Column("stages", String(255), nullable=False, default=""),
    Column("total", Integer, nullable=False, default=0),
    Column("created", Integer, nullable=False, default=0),
    Column("updated", Integer, nullable=False, default=0),
    Column("unchanged", Integer, nullable=False, default=0),
    Column("skipped", Integer, nullable=False, default=0),
    Column("conflicts", Integer, nullable=False, default=0),
    Column("errors", Integer, nullable=False, default=0),
    Column("error_details", Text, nullable=True),
    Index("ix_sync_run_store_started_at", "store_id", "started_at"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(CanonicalProduct, canonical_product_table)
    mapper_registry.map_imperatively(SyncRun, sync_run_table)
    return mapper_registry
