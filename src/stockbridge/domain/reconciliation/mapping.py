"""Field mapping from source projections onto canonical products."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stockbridge.domain.model import CanonicalProduct, normalize_key, quantize_amount

if TYPE_CHECKING:
    from collections.abc import Mapping

    from stockbridge.domain.model import ErpItem, InventoryItem, StorefrontProduct

# written only when the sku guard allows it
IDENTITY_FIELDS: tuple[str, ...] = ("sku", "barcode", "erp_code")


def erp_identity_values(item: ErpItem) -> dict[str, object]:
    values: dict[str, object] = {
        "sku": item.sku,
        "barcode": normalize_key(item.barcode),
        "erp_code": normalize_key(item.code),
    }
    return {key: value for key, value in values.items() if value is not None}


def erp_field_values(item: ErpItem) -> dict[str, object]:
    """Commercial fields and stock owned by the ERP.

    Absent or unparseable source values keep the canonical value.
    """

    values: dict[str, object] = {
        "erp_internal_id": normalize_key(item.internal_id),
        "name": _clean_text(item.name),
        "category": _clean_text(item.category),
        "unit": _clean_text(item.unit),
        "item_group": _clean_text(item.item_group),
        "vat": _clean_text(item.vat),
        "retail_price": quantize_amount(item.retail_price),
        "wholesale_price": quantize_amount(item.wholesale_price),
        "sale_price": quantize_amount(item.sale_price),
        "purchase_price": quantize_amount(item.purchase_price),
        "discount": quantize_amount(item.discount),
        "erp_quantity": quantize_amount(item.quantity),
    }
    return {key: value for key, value in values.items() if value is not None}


def inventory_field_values(item: InventoryItem, product: CanonicalProduct) -> dict[str, object]:
    """Ledger link and quantity, plus descriptive fields the product still lacks.

    The sku is left to the caller, which has to run the uniqueness guard first.
    """

    values: dict[str, object] = {"inventory_record_id": item.id}
    quantity = quantize_amount(item.stock_quantity)
    if quantity is not None:
        values["inventory_quantity"] = quantity
    name = _clean_text(item.name)
    if product.name is None and name is not None:
        values["name"] = name
    barcode = normalize_key(item.barcode)
    if product.barcode is None and barcode is not None:
        values["barcode"] = barcode
    return values


def storefront_field_values(
    storefront: StorefrontProduct, product: CanonicalProduct
) -> dict[str, object]:
    values: dict[str, object] = {"storefront_id": storefront.id}
    name = _clean_text(storefront.name)
    if product.name is None and name is not None:
        values["name"] = name
    price = quantize_amount(storefront.price)
    if product.retail_price is None and price is not None:
        values["retail_price"] = price
    return values


def apply_fields(product: CanonicalProduct, values: Mapping[str, object]) -> list[str]:
    """Assign ``values`` and return the names of fields that actually changed."""

    changed: list[str] = []
    for name, value in values.items():
        if getattr(product, name) != value:
            setattr(product, name, value)
            changed.append(name)
    return changed


def build_from_erp(item: ErpItem, *, store_id: int) -> CanonicalProduct:
    product = CanonicalProduct(store_id=store_id)
    apply_fields(product, erp_identity_values(item))
    apply_fields(product, erp_field_values(item))
    return product


def build_from_inventory(item: InventoryItem, *, store_id: int) -> CanonicalProduct:
    product = CanonicalProduct(store_id=store_id, sku=normalize_key(item.sku))
    apply_fields(product, inventory_field_values(item, product))
    return product


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
