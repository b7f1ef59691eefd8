from __future__ import annotations

from decimal import Decimal
from typing import Any

from stockbridge.domain.model import CanonicalProduct, ErpItem, InventoryItem


def make_erp_item(
    code: str | None = "A1",
    *,
    internal_id: str | None = "100",
    quantity: str | None = "10",
    retail_price: str | None = "12.50",
    **overrides: Any,
) -> ErpItem:
    values: dict[str, Any] = {
        "internal_id": internal_id,
        "code": code,
        "name": f"Product {code or internal_id}",
        "quantity": Decimal(quantity) if quantity is not None else None,
        "retail_price": Decimal(retail_price) if retail_price is not None else None,
    }
    values.update(overrides)
    return ErpItem(**values)


def make_inventory_item(
    record_id: int = 7,
    *,
    sku: str | None = "A1",
    product_id: int | None = 55,
    quantity: str | None = "4",
    **overrides: Any,
) -> InventoryItem:
    values: dict[str, Any] = {
        "id": record_id,
        "sku": sku,
        "product_id": product_id,
        "name": f"Inventory {sku}",
        "stock_quantity": Decimal(quantity) if quantity is not None else None,
    }
    values.update(overrides)
    return InventoryItem(**values)


def make_product(sku: str | None = "A1", **overrides: Any) -> CanonicalProduct:
    values: dict[str, Any] = {"sku": sku, "name": f"Product {sku}"}
    values.update(overrides)
    return CanonicalProduct(**values)
