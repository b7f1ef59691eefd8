"""The canonical product: one reconciled record per physical product per store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .enums import SyncSource, SyncStatus

DEFAULT_STORE_ID = 1
AMOUNT_QUANTUM = Decimal("0.0001")


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def normalize_key(value: str | None) -> str | None:
    """Strip identifiers; blank keys are treated as absent."""

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def quantize_amount(value: Decimal | None) -> Decimal | None:
    """Round to the precision the canonical store keeps (4 places)."""

    if value is None:
        return None
    return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def ledger_quantity(value: Decimal | None) -> int:
    """Whole, non-negative stock quantity as the inventory ledger expects it."""

    if value is None:
        return 0
    return max(0, int(value))


@dataclass(eq=False, kw_only=True)
class CanonicalProduct:
    store_id: int = DEFAULT_STORE_ID
    id: int | None = None

    # identifiers
    erp_internal_id: str | None = None
    erp_code: str | None = None
    barcode: str | None = None
    storefront_id: int | None = None
    inventory_record_id: int | None = None
    sku: str | None = None

    # commercial attributes
    name: str | None = None
    category: str | None = None
    unit: str | None = None
    item_group: str | None = None
    vat: str | None = None
    retail_price: Decimal | None = None
    wholesale_price: Decimal | None = None
    sale_price: Decimal | None = None
    purchase_price: Decimal | None = None
    discount: Decimal | None = None

    # quantities, each written by its own phase only
    erp_quantity: Decimal | None = None
    inventory_quantity: Decimal | None = None

    last_synced_at: datetime | None = None
    last_sync_status: SyncStatus | None = None
    last_sync_source: SyncSource | None = None
    last_sync_detail: str | None = None
    last_sync_error: str | None = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def has_erp_origin(self) -> bool:
        return self.erp_internal_id is not None or self.erp_code is not None

    @property
    def label(self) -> str:
        """Short human-readable reference for logs and error details."""

        ident = f"#{self.id}" if self.id is not None else "(new)"
        return f"{ident} sku={self.sku or '-'}"

    def mark_synced(
        self,
        *,
        status: SyncStatus,
        source: SyncSource,
        at: datetime,
        detail: str | None = None,
        error: str | None = None,
    ) -> None:
        self.last_synced_at = at
        self.last_sync_status = status
        self.last_sync_source = source
        self.last_sync_detail = detail
        self.last_sync_error = error
