from __future__ import annotations

from stockbridge.domain.model import MatchTier, StorefrontProduct
from stockbridge.domain.reconciliation import (
    NoMatch,
    ResolvedMatch,
    resolve_erp_item,
    resolve_inventory_item,
    resolve_storefront_product,
)
from tests.helpers.fakes import InMemoryProductRepository
from tests.helpers.products import make_erp_item, make_inventory_item, make_product


def test_erp_internal_id_takes_precedence_over_code() -> None:
    by_id = make_product("OTHER", erp_internal_id="100")
    by_code = make_product("A1", erp_code="A1")
    repo = InMemoryProductRepository([by_code, by_id])

    resolution = resolve_erp_item(make_erp_item("A1", internal_id="100"), repo)

    assert isinstance(resolution, ResolvedMatch)
    assert resolution.target is by_id
    assert resolution.tier is MatchTier.ERP_INTERNAL_ID
    assert resolution.matched_key == "100"


def test_erp_code_matches_only_products_without_internal_id() -> None:
    linked = make_product("A1", erp_internal_id="999", erp_code="A1")
    repo = InMemoryProductRepository([linked])

    resolution = resolve_erp_item(make_erp_item("A1", internal_id="100"), repo)

    assert isinstance(resolution, NoMatch)
    assert resolution.reason == "no_erp_match"


def test_erp_code_matches_inventory_only_product_by_sku() -> None:
    inventory_only = make_product("A1", inventory_record_id=7)
    repo = InMemoryProductRepository([inventory_only])

    resolution = resolve_erp_item(make_erp_item(" A1 ", internal_id="100"), repo)

    assert isinstance(resolution, ResolvedMatch)
    assert resolution.target is inventory_only
    assert resolution.tier is MatchTier.ERP_CODE
    assert resolution.matched_key == "A1"


def test_erp_barcode_is_the_last_tier() -> None:
    product = make_product("5201234567890", barcode="5201234567890")
    repo = InMemoryProductRepository([product])

    item = make_erp_item(None, internal_id=None, barcode="5201234567890")
    resolution = resolve_erp_item(item, repo)

    assert isinstance(resolution, ResolvedMatch)
    assert resolution.tier is MatchTier.ERP_BARCODE


def test_blank_erp_keys_never_match() -> None:
    repo = InMemoryProductRepository([make_product(None, erp_code=None)])

    resolution = resolve_erp_item(make_erp_item("  ", internal_id="", barcode=" "), repo)

    assert isinstance(resolution, NoMatch)


def test_inventory_record_id_wins_over_sku() -> None:
    by_record = make_product("B2", inventory_record_id=7)
    by_sku = make_product("A1")
    repo = InMemoryProductRepository([by_sku, by_record])

    resolution = resolve_inventory_item(make_inventory_item(7, sku="A1"), repo)

    assert isinstance(resolution, ResolvedMatch)
    assert resolution.target is by_record
    assert resolution.tier is MatchTier.INVENTORY_RECORD_ID


def test_inventory_falls_back_to_sku() -> None:
    product = make_product("A1")
    repo = InMemoryProductRepository([product])

    resolution = resolve_inventory_item(make_inventory_item(7, sku="A1"), repo)

    assert isinstance(resolution, ResolvedMatch)
    assert resolution.tier is MatchTier.SKU


def test_storefront_resolution_by_id_then_sku() -> None:
    linked = make_product("A1", storefront_id=55)
    unlinked = make_product("B2")
    repo = InMemoryProductRepository([linked, unlinked])

    by_id = resolve_storefront_product(StorefrontProduct(id=55, sku="B2"), repo)
    by_sku = resolve_storefront_product(StorefrontProduct(id=56, sku="B2"), repo)
    missing = resolve_storefront_product(StorefrontProduct(id=57, sku=None), repo)

    assert isinstance(by_id, ResolvedMatch)
    assert by_id.target is linked
    assert isinstance(by_sku, ResolvedMatch)
    assert by_sku.target is unlinked
    assert by_sku.tier is MatchTier.SKU
    assert isinstance(missing, NoMatch)
    assert missing.reason == "no_storefront_match"
