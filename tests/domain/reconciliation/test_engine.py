from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from stockbridge.domain.errors import TransientSourceError
from stockbridge.domain.model import MatchTier, StorefrontProduct, SyncSource, SyncStatus
from stockbridge.domain.ports import BatchItemOutcome
from stockbridge.domain.reconciliation import (
    ReconcileAction,
    ReconciliationEngine,
    ReconciliationPolicy,
)
from tests.helpers.fakes import InMemoryProductRepository
from tests.helpers.products import make_erp_item, make_inventory_item, make_product

if TYPE_CHECKING:
    from stockbridge.domain.model import CanonicalProduct

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _engine(
    repo: InMemoryProductRepository, *, policy: ReconciliationPolicy | None = None
) -> ReconciliationEngine:
    return ReconciliationEngine(repo, store_id=1, policy=policy, clock=lambda: NOW)


# ERP -----------------------------------------------------------------------


def test_new_erp_item_creates_canonical_product() -> None:
    repo = InMemoryProductRepository()

    result = _engine(repo).reconcile_erp_item(make_erp_item("A1", quantity="10"))

    assert result.action is ReconcileAction.CREATE
    assert result.source is SyncSource.ERP
    (product,) = repo.items
    assert product.sku == "A1"
    assert product.erp_code == "A1"
    assert product.erp_internal_id == "100"
    assert product.erp_quantity == Decimal("10.0000")
    assert product.retail_price == Decimal("12.5000")
    assert product.last_sync_status is SyncStatus.CREATED
    assert product.last_synced_at == NOW


def test_erp_item_without_code_uses_barcode_as_sku() -> None:
    repo = InMemoryProductRepository()

    _engine(repo).reconcile_erp_item(make_erp_item(None, barcode="520123"))

    assert repo.items[0].sku == "520123"
    assert repo.items[0].barcode == "520123"


def test_reconciling_the_same_erp_item_twice_is_unchanged() -> None:
    repo = InMemoryProductRepository()
    engine = _engine(repo)
    item = make_erp_item("A1")

    engine.reconcile_erp_item(item)
    second = engine.reconcile_erp_item(item)

    assert second.action is ReconcileAction.UPDATE
    assert second.tier is MatchTier.ERP_INTERNAL_ID
    assert second.changed is False
    assert len(repo.items) == 1


def test_erp_update_overwrites_owned_fields_without_blanking() -> None:
    product = make_product("A1", erp_internal_id="100", name="Old name", category="Tools")
    repo = InMemoryProductRepository([product])

    item = make_erp_item("A1", name="New name", quantity="3")
    result = _engine(repo).reconcile_erp_item(item)

    assert result.changed is True
    assert product.name == "New name"
    assert product.category == "Tools"
    assert product.erp_quantity == Decimal("3.0000")
    assert product.last_sync_status is SyncStatus.UPDATED


def test_erp_item_without_keys_is_skipped() -> None:
    repo = InMemoryProductRepository()

    result = _engine(repo).reconcile_erp_item(make_erp_item(None, internal_id=None))

    assert result.action is ReconcileAction.SKIP
    assert result.message == "empty resolution key"
    assert repo.items == []


def test_erp_create_skips_when_sku_has_another_owner() -> None:
    owner = make_product("A1", erp_internal_id="999")
    repo = InMemoryProductRepository([owner])

    result = _engine(repo).reconcile_erp_item(make_erp_item("A1", internal_id="100"))

    assert result.action is ReconcileAction.SKIP
    assert result.conflict is True
    assert result.message == f"SKU 'A1' already belongs to product #{owner.id}"
    assert len(repo.items) == 1


def test_erp_update_under_sku_conflict_keeps_identity_fields() -> None:
    target = make_product("OLD", erp_internal_id="100", erp_code="OLD")
    owner = make_product("A1")
    repo = InMemoryProductRepository([target, owner])

    item = make_erp_item("A1", internal_id="100", name="Renamed")
    result = _engine(repo).reconcile_erp_item(item)

    assert result.action is ReconcileAction.UPDATE
    assert result.conflict is True
    assert target.sku == "OLD"
    assert target.erp_code == "OLD"
    assert target.name == "Renamed"
    assert target.last_sync_status is SyncStatus.SKIPPED_CONFLICT
    assert target.last_sync_detail == (
        f"Updated (SKU conflict: SKU 'A1' already belongs to product #{owner.id})"
    )


def test_erp_creation_can_be_disabled() -> None:
    repo = InMemoryProductRepository()
    engine = _engine(repo, policy=ReconciliationPolicy(create_missing=False))

    result = engine.reconcile_erp_item(make_erp_item("A1"))

    assert result.action is ReconcileAction.SKIP
    assert result.message == "creation disabled"
    assert repo.items == []


# Inventory ledger ------------------------------------------------------------


def test_inventory_record_links_product_found_by_sku() -> None:
    product = make_product("A1", erp_internal_id="100")
    repo = InMemoryProductRepository([product])

    item = make_inventory_item(7, sku="A1", product_id=55, quantity="4")
    result = asyncio.run(_engine(repo).reconcile_inventory_item(item))

    assert result.action is ReconcileAction.UPDATE
    assert result.tier is MatchTier.SKU
    assert product.inventory_record_id == 7
    assert product.inventory_quantity == Decimal("4.0000")
    assert product.storefront_id == 55
    assert product.erp_quantity is None


def test_inventory_record_does_not_steal_linked_product() -> None:
    product = make_product("A1", inventory_record_id=3)
    repo = InMemoryProductRepository([product])

    result = asyncio.run(_engine(repo).reconcile_inventory_item(make_inventory_item(7, sku="A1")))

    assert result.action is ReconcileAction.SKIP
    assert "already linked to inventory record 3" in (result.message or "")
    assert product.inventory_record_id == 3


def test_unmatched_inventory_record_creates_inventory_only_product() -> None:
    repo = InMemoryProductRepository()

    item = make_inventory_item(7, sku="M100", product_id=55, quantity="2")
    result = asyncio.run(_engine(repo).reconcile_inventory_item(item))

    assert result.action is ReconcileAction.CREATE
    (product,) = repo.items
    assert product.sku == "M100"
    assert product.inventory_record_id == 7
    assert product.storefront_id == 55
    assert product.has_erp_origin is False
    assert product.last_sync_source is SyncSource.INVENTORY


def test_inventory_create_rechecks_sku_ownership() -> None:
    owner = make_product("A1")
    repo = InMemoryProductRepository([owner])

    result = _engine(repo).create_from_inventory(make_inventory_item(7, sku="A1"))

    assert result.action is ReconcileAction.SKIP
    assert result.conflict is True
    assert len(repo.items) == 1


def test_inventory_record_without_sku_is_skipped() -> None:
    repo = InMemoryProductRepository()

    result = asyncio.run(_engine(repo).reconcile_inventory_item(make_inventory_item(7, sku=None)))

    assert result.action is ReconcileAction.SKIP
    assert result.message == "inventory record without sku"


def test_inventory_create_backfills_name_from_storefront() -> None:
    repo = InMemoryProductRepository()
    looked_up: list[int] = []

    async def lookup(product_id: int) -> StorefrontProduct | None:
        looked_up.append(product_id)
        return StorefrontProduct(id=product_id, sku="M100", name="Shop name", price=Decimal("9"))

    item = make_inventory_item(7, sku="M100", product_id=55, name=None)
    asyncio.run(_engine(repo).reconcile_inventory_item(item, storefront_lookup=lookup))

    assert looked_up == [55]
    assert repo.items[0].name == "Shop name"
    assert repo.items[0].retail_price == Decimal("9.0000")


def test_failed_backfill_still_creates_product() -> None:
    repo = InMemoryProductRepository()

    async def lookup(product_id: int) -> StorefrontProduct | None:
        raise TransientSourceError(f"woocommerce: product {product_id} timed out")

    item = make_inventory_item(7, sku="M100", product_id=55, name=None)
    result = asyncio.run(_engine(repo).reconcile_inventory_item(item, storefront_lookup=lookup))

    assert result.action is ReconcileAction.CREATE
    assert repo.items[0].name is None


# Storefront ------------------------------------------------------------------


def test_storefront_product_links_by_sku_and_fills_gaps() -> None:
    product = make_product("A1", name=None)
    repo = InMemoryProductRepository([product])

    storefront = StorefrontProduct(id=55, sku="A1", name="Shop name", price=Decimal("5"))
    result = _engine(repo).reconcile_storefront_product(storefront)

    assert result.action is ReconcileAction.UPDATE
    assert result.tier is MatchTier.SKU
    assert product.storefront_id == 55
    assert product.name == "Shop name"


def test_storefront_id_already_owned_is_a_conflict() -> None:
    owner = make_product("B2", storefront_id=55)
    product = make_product("A1")
    repo = InMemoryProductRepository([owner, product])

    result = _engine(repo).update_from_storefront(product, StorefrontProduct(id=55, sku="A1"))

    assert result.action is ReconcileAction.SKIP
    assert result.conflict is True
    assert product.storefront_id is None


def test_unmatched_storefront_product_is_never_created() -> None:
    repo = InMemoryProductRepository()

    result = _engine(repo).reconcile_storefront_product(StorefrontProduct(id=55, sku="Z9"))

    assert result.action is ReconcileAction.SKIP
    assert repo.items == []


def test_sku_lookup_landing_on_another_products_storefront_id_is_a_conflict() -> None:
    owner = make_product("Q1", storefront_id=55)
    product = make_product("P1")
    repo = InMemoryProductRepository([owner, product])

    result = _engine(repo).link_storefront_match(product, StorefrontProduct(id=55, sku="P1"))

    assert result.action is ReconcileAction.SKIP
    assert result.conflict is True
    assert result.product_id == product.id
    assert product.storefront_id is None
    assert product.last_sync_status is SyncStatus.SKIPPED_CONFLICT
    assert owner.last_sync_status is None


def test_sku_lookup_links_the_product_that_asked() -> None:
    product = make_product("P1")
    repo = InMemoryProductRepository([product])

    result = _engine(repo).link_storefront_match(product, StorefrontProduct(id=56, sku="P1"))

    assert result.action is ReconcileAction.UPDATE
    assert result.tier is MatchTier.SKU
    assert product.storefront_id == 56


def test_link_storefront_draft_counts_as_creation() -> None:
    product = make_product("A1", erp_internal_id="100")
    repo = InMemoryProductRepository([product])

    result = _engine(repo).link_storefront_draft(product, StorefrontProduct(id=1001, sku="A1"))

    assert result.action is ReconcileAction.CREATE
    assert result.source is SyncSource.STOREFRONT
    assert product.storefront_id == 1001


# Batch decisions ---------------------------------------------------------------


def test_inventory_create_command_requires_storefront_link_and_erp_origin() -> None:
    ready = make_product("A1", erp_internal_id="100", storefront_id=55, barcode="520")
    ready.erp_quantity = Decimal("3.7")
    no_storefront = make_product("B2", erp_internal_id="101")
    inventory_only = make_product("C3", storefront_id=56)
    repo = InMemoryProductRepository([ready, no_storefront, inventory_only])
    engine = _engine(repo)

    command = engine.inventory_create_command(ready)

    assert command is not None
    assert command.storefront_id == 55
    assert command.sku == "A1"
    assert command.barcode == "520"
    assert command.quantity == 3
    assert engine.inventory_create_command(no_storefront) is None
    assert engine.inventory_create_command(inventory_only) is None


def test_negative_erp_stock_is_sent_as_zero() -> None:
    product = make_product("A1", erp_internal_id="100", storefront_id=55)
    product.erp_quantity = Decimal("-2")
    repo = InMemoryProductRepository([product])

    command = _engine(repo).inventory_create_command(product)

    assert command is not None
    assert command.quantity == 0


def test_inventory_update_command_only_when_quantity_drifts() -> None:
    product = make_product("A1", erp_internal_id="100", storefront_id=55, inventory_record_id=7)
    product.erp_quantity = Decimal("10")
    product.inventory_quantity = Decimal("4")
    repo = InMemoryProductRepository([product])
    engine = _engine(repo)

    command = engine.inventory_update_command(product)
    assert command is not None
    assert command.inventory_record_id == 7
    assert command.quantity == 10

    product.inventory_quantity = Decimal("10.0000")
    assert engine.inventory_update_command(product) is None


def test_unmatched_inventory_is_zeroed_only_when_enabled() -> None:
    product = make_product("M100", inventory_record_id=7)
    product.inventory_quantity = Decimal("5")
    repo = InMemoryProductRepository([product])

    assert _engine(repo).inventory_update_command(product) is None

    zeroing = _engine(repo, policy=ReconciliationPolicy(zero_unmatched_inventory=True))
    command = zeroing.inventory_update_command(product)
    assert command is not None
    assert command.quantity == 0


def test_apply_inventory_create_records_link() -> None:
    product = make_product("A1", erp_internal_id="100", storefront_id=55)
    product.erp_quantity = Decimal("10")
    repo = InMemoryProductRepository([product])
    engine = _engine(repo)
    command = engine.inventory_create_command(product)
    assert command is not None

    result = engine.apply_inventory_create(product, command, BatchItemOutcome(record_id=901))

    assert result.action is ReconcileAction.CREATE
    assert product.inventory_record_id == 901
    assert product.inventory_quantity == Decimal("10.0000")
    assert product.last_sync_detail == "Inventory record 901 created"


def test_apply_inventory_create_failure_marks_product() -> None:
    product = make_product("A1", erp_internal_id="100", storefront_id=55)
    repo = InMemoryProductRepository([product])
    engine = _engine(repo)
    command = engine.inventory_create_command(product)
    assert command is not None

    outcome = BatchItemOutcome.failure("Inventory already exists", code="atum_duplicate")
    result = engine.apply_inventory_create(product, command, outcome)

    assert result.action is ReconcileAction.ERROR
    assert product.inventory_record_id is None
    assert product.last_sync_status is SyncStatus.ERROR
    assert product.last_sync_error == "atum_duplicate: Inventory already exists"


def test_record_id_claimed_earlier_in_the_same_chunk_is_not_linked_twice() -> None:
    first = make_product("A1", id=1, erp_internal_id="100", storefront_id=55)
    second = make_product("B2", id=2, erp_internal_id="101", storefront_id=56)
    # the first link is still pending, so the repository cannot see it
    repo = InMemoryProductRepository([second])
    engine = _engine(repo)
    claimed: dict[int, CanonicalProduct] = {}

    first_command = engine.inventory_create_command(first)
    second_command = engine.inventory_create_command(second)
    assert first_command is not None
    assert second_command is not None

    linked = engine.apply_inventory_create(
        first, first_command, BatchItemOutcome(record_id=901), claimed=claimed
    )
    duplicate = engine.apply_inventory_create(
        second, second_command, BatchItemOutcome(record_id=901), claimed=claimed
    )

    assert linked.action is ReconcileAction.CREATE
    assert duplicate.action is ReconcileAction.ERROR
    assert first.inventory_record_id == 901
    assert second.inventory_record_id is None
    assert second.last_sync_error == "inventory record 901 already belongs to #1 sku=A1"
