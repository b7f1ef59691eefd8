"""Canonical identity resolution for each source.

Resolution is a pure read against the product repository: tiers are evaluated
in order and the first hit wins. Each tier is scoped so that at most one
canonical product can answer it, which is why there is no ambiguous outcome.

Out of scope for this stage:
- field mapping and conflict policy
- domain mutation
- commit/flush
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stockbridge.domain.model import MatchTier, normalize_key

from .contracts import NoMatch, ResolvedMatch

if TYPE_CHECKING:
    from stockbridge.domain.model import ErpItem, InventoryItem, StorefrontProduct
    from stockbridge.domain.ports import ProductRepository

    from .contracts import Resolution


def resolve_erp_item(item: ErpItem, products: ProductRepository) -> Resolution:
    """Resolve an ERP row.

    1. internal id against every product
    2. code against products without an internal id (code, sku or barcode column)
    3. barcode, with the same restriction
    """

    internal_id = normalize_key(item.internal_id)
    if internal_id is not None:
        found = products.get_by_erp_internal_id(internal_id)
        if found is not None:
            return ResolvedMatch(
                target=found, tier=MatchTier.ERP_INTERNAL_ID, matched_key=internal_id
            )

    code = normalize_key(item.code)
    if code is not None:
        found = products.find_unlinked_by_erp_key(code)
        if found is not None:
            return ResolvedMatch(target=found, tier=MatchTier.ERP_CODE, matched_key=code)

    barcode = normalize_key(item.barcode)
    if barcode is not None:
        found = products.find_unlinked_by_erp_key(barcode)
        if found is not None:
            return ResolvedMatch(target=found, tier=MatchTier.ERP_BARCODE, matched_key=barcode)

    return NoMatch(reason="no_erp_match")


def resolve_inventory_item(item: InventoryItem, products: ProductRepository) -> Resolution:
    """Resolve a ledger record by its record id, falling back to sku."""

    found = products.get_by_inventory_record_id(item.id)
    if found is not None:
        return ResolvedMatch(
            target=found, tier=MatchTier.INVENTORY_RECORD_ID, matched_key=str(item.id)
        )
    return _resolve_by_sku(item.sku, products, reason="no_inventory_match")


def resolve_storefront_product(
    product: StorefrontProduct, products: ProductRepository
) -> Resolution:
    """Resolve a storefront product by its storefront id, falling back to sku."""

    found = products.get_by_storefront_id(product.id)
    if found is not None:
        return ResolvedMatch(
            target=found, tier=MatchTier.STOREFRONT_ID, matched_key=str(product.id)
        )
    return _resolve_by_sku(product.sku, products, reason="no_storefront_match")


def _resolve_by_sku(sku: str | None, products: ProductRepository, *, reason: str) -> Resolution:
    key = normalize_key(sku)
    if key is not None:
        found = products.get_by_sku(key)
        if found is not None:
            return ResolvedMatch(target=found, tier=MatchTier.SKU, matched_key=key)
    return NoMatch(reason=reason)
