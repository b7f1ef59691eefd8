"""Typed projections of source-native records.

Adapters decode vendor payloads into these immediately, so the resolver and
the reconciliation engine never see raw field names.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal  # noqa: TC003

from .product import normalize_key


@dataclass(slots=True, frozen=True, kw_only=True)
class ErpItem:
    internal_id: str | None = None
    code: str | None = None
    barcode: str | None = None
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
    quantity: Decimal | None = None

    @property
    def sku(self) -> str | None:
        return normalize_key(self.code) or normalize_key(self.barcode)

    @property
    def has_resolution_key(self) -> bool:
        return any(
            normalize_key(value) is not None
            for value in (self.internal_id, self.code, self.barcode)
        )

    @property
    def label(self) -> str:
        return f"ERP item {self.internal_id or '-'} ({self.code or self.barcode or 'no code'})"


@dataclass(slots=True, frozen=True, kw_only=True)
class StorefrontProduct:
    id: int
    sku: str | None = None
    name: str | None = None
    price: Decimal | None = None
    status: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class InventoryItem:
    id: int
    product_id: int | None = None
    name: str | None = None
    sku: str | None = None
    barcode: str | None = None
    stock_quantity: Decimal | None = None
    is_main: bool = False

    @property
    def label(self) -> str:
        return f"inventory record {self.id} (sku={self.sku or '-'})"
