"""Per-record reconciliation decisions.

The engine turns a resolution (or its absence) plus a source projection into one
of Create / Update / Skip / Error and applies the mutation to the canonical
product. It never commits: the orchestrator owns transaction boundaries and
discards a record's pending changes when the store rejects them.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal
from logging import getLogger
from typing import TYPE_CHECKING

from stockbridge.domain.errors import SOURCE_ERRORS, SkuConflictError
from stockbridge.domain.model import (
    MatchTier,
    StorefrontProduct,
    SyncSource,
    SyncStatus,
    ledger_quantity,
    normalize_key,
    quantize_amount,
    utcnow,
)
from stockbridge.domain.ports import InventoryCreateCommand, InventoryUpdateCommand

from .contracts import ReconcileAction, ReconcileResult, ResolvedMatch
from .mapping import (
    apply_fields,
    build_from_erp,
    build_from_inventory,
    erp_field_values,
    erp_identity_values,
    inventory_field_values,
    storefront_field_values,
)
from .resolve import resolve_erp_item, resolve_inventory_item, resolve_storefront_product

if TYPE_CHECKING:
    from datetime import datetime

    from stockbridge.domain.model import CanonicalProduct, ErpItem, InventoryItem
    from stockbridge.domain.ports import BatchItemOutcome, ProductRepository

log = getLogger(__name__)

type StorefrontLookup = Callable[[int], Awaitable[StorefrontProduct | None]]


@dataclass(slots=True, frozen=True)
class ReconciliationPolicy:
    create_missing: bool = True
    update_existing: bool = True
    zero_unmatched_inventory: bool = False


class ReconciliationEngine:
    def __init__(
        self,
        products: ProductRepository,
        *,
        store_id: int,
        policy: ReconciliationPolicy | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.products = products
        self.store_id = store_id
        self.policy = policy or ReconciliationPolicy()
        self._clock = clock

    # ERP -------------------------------------------------------------------

    def reconcile_erp_item(self, item: ErpItem) -> ReconcileResult:
        if not item.has_resolution_key:
            return ReconcileResult.skipped(
                source=SyncSource.ERP, message="empty resolution key", subject=item.label
            )

        resolution = resolve_erp_item(item, self.products)
        if isinstance(resolution, ResolvedMatch):
            if not self.policy.update_existing:
                return self._disabled(SyncSource.ERP, "update", resolution)
            return self.update_from_erp(resolution.target, item, tier=resolution.tier)

        if not self.policy.create_missing:
            return ReconcileResult.skipped(
                source=SyncSource.ERP, message="creation disabled", subject=item.label
            )
        return self.create_from_erp(item)

    def create_from_erp(self, item: ErpItem) -> ReconcileResult:
        sku = item.sku
        conflict = self._sku_conflict(sku, None)
        if conflict is not None:
            log.warning("Skipping %s: %s", item.label, conflict)
            return ReconcileResult.skipped(
                source=SyncSource.ERP, message=str(conflict), subject=sku, conflict=True
            )

        product = build_from_erp(item, store_id=self.store_id)
        product.mark_synced(status=SyncStatus.CREATED, source=SyncSource.ERP, at=self._clock())
        self.products.add(product)
        return ReconcileResult.created(product, source=SyncSource.ERP)

    def update_from_erp(
        self,
        product: CanonicalProduct,
        item: ErpItem,
        *,
        tier: MatchTier | None = None,
    ) -> ReconcileResult:
        """Overwrite ERP-owned fields; identity fields only when the sku guard allows."""

        values = erp_field_values(item)
        identity = erp_identity_values(item)
        conflict = self._sku_conflict(item.sku, product)
        if conflict is None:
            values.update(identity)
        else:
            log.warning("Partial update of %s from %s: %s", product.label, item.label, conflict)

        changed = self._apply(product, values)
        if conflict is not None:
            status, detail = SyncStatus.SKIPPED_CONFLICT, f"Updated (SKU conflict: {conflict})"
        else:
            status, detail = SyncStatus.UPDATED, None
        product.mark_synced(status=status, source=SyncSource.ERP, at=self._clock(), detail=detail)
        return ReconcileResult.updated(
            product,
            source=SyncSource.ERP,
            tier=tier,
            changed=changed,
            conflict=conflict is not None,
            message=detail,
        )

    # Inventory ledger --------------------------------------------------------

    async def reconcile_inventory_item(
        self,
        item: InventoryItem,
        *,
        storefront_lookup: StorefrontLookup | None = None,
    ) -> ReconcileResult:
        resolution = resolve_inventory_item(item, self.products)
        if isinstance(resolution, ResolvedMatch):
            if not self.policy.update_existing:
                return self._disabled(SyncSource.INVENTORY, "update", resolution)
            return self.update_from_inventory(resolution.target, item, tier=resolution.tier)

        if not self.policy.create_missing:
            return ReconcileResult.skipped(
                source=SyncSource.INVENTORY, message="creation disabled", subject=item.label
            )

        backfill: StorefrontProduct | None = None
        if (
            normalize_key(item.name) is None
            and item.product_id is not None
            and storefront_lookup is not None
            and normalize_key(item.sku) is not None
        ):
            backfill = await self._lookup_backfill(item, item.product_id, storefront_lookup)
        return self.create_from_inventory(item, backfill=backfill)

    def create_from_inventory(
        self,
        item: InventoryItem,
        *,
        backfill: StorefrontProduct | None = None,
    ) -> ReconcileResult:
        sku = normalize_key(item.sku)
        if sku is None:
            return ReconcileResult.skipped(
                source=SyncSource.INVENTORY,
                message="inventory record without sku",
                subject=item.label,
            )

        # resolution may be stale by now; never create a second owner of the sku
        conflict = self._sku_conflict(sku, None)
        if conflict is not None:
            log.warning("Skipping %s: %s", item.label, conflict)
            return ReconcileResult.skipped(
                source=SyncSource.INVENTORY, message=str(conflict), subject=sku, conflict=True
            )

        product = build_from_inventory(item, store_id=self.store_id)
        storefront_id = item.product_id
        owner = self.products.get_by_storefront_id(storefront_id) if storefront_id else None
        if owner is not None:
            storefront_id = None
        if backfill is not None:
            values = storefront_field_values(backfill, product)
            values.pop("storefront_id")
            apply_fields(product, values)
        product.storefront_id = storefront_id
        product.mark_synced(
            status=SyncStatus.CREATED, source=SyncSource.INVENTORY, at=self._clock()
        )
        self.products.add(product)
        return ReconcileResult.created(product, source=SyncSource.INVENTORY)

    def update_from_inventory(
        self,
        product: CanonicalProduct,
        item: InventoryItem,
        *,
        tier: MatchTier | None = None,
    ) -> ReconcileResult:
        """Record the ledger link and quantity; fill name/sku/barcode only when empty."""

        if product.inventory_record_id not in (None, item.id):
            return ReconcileResult.skipped(
                source=SyncSource.INVENTORY,
                message=(
                    f"{product.label} is already linked to inventory record "
                    f"{product.inventory_record_id}"
                ),
                subject=item.label,
                tier=tier,
                product_id=product.id,
            )

        values = inventory_field_values(item, product)
        conflict: SkuConflictError | None = None
        sku = normalize_key(item.sku)
        if product.sku is None and sku is not None:
            conflict = self._sku_conflict(sku, product)
            if conflict is None:
                values["sku"] = sku
        if (
            product.storefront_id is None
            and item.product_id is not None
            and self.products.get_by_storefront_id(item.product_id) is None
        ):
            values["storefront_id"] = item.product_id

        changed = self._apply(product, values)
        detail = f"Updated (SKU conflict: {conflict})" if conflict is not None else None
        product.mark_synced(
            status=SyncStatus.SKIPPED_CONFLICT if conflict is not None else SyncStatus.UPDATED,
            source=SyncSource.INVENTORY,
            at=self._clock(),
            detail=detail,
        )
        return ReconcileResult.updated(
            product,
            source=SyncSource.INVENTORY,
            tier=tier,
            changed=changed,
            conflict=conflict is not None,
            message=detail,
        )

    # Storefront --------------------------------------------------------------

    def reconcile_storefront_product(self, storefront: StorefrontProduct) -> ReconcileResult:
        """Link a storefront product to its canonical product; never creates one."""

        resolution = resolve_storefront_product(storefront, self.products)
        if not isinstance(resolution, ResolvedMatch):
            return ReconcileResult.skipped(
                source=SyncSource.STOREFRONT,
                message="unmatched storefront product",
                subject=storefront.sku or str(storefront.id),
            )
        if not self.policy.update_existing:
            return self._disabled(SyncSource.STOREFRONT, "update", resolution)
        return self.update_from_storefront(resolution.target, storefront, tier=resolution.tier)

    def link_storefront_match(
        self, product: CanonicalProduct, storefront: StorefrontProduct
    ) -> ReconcileResult:
        """Link the storefront product found by ``product``'s sku, unless it belongs elsewhere."""

        resolution = resolve_storefront_product(storefront, self.products)
        if isinstance(resolution, ResolvedMatch) and resolution.target is not product:
            detail = (
                f"storefront product {storefront.id} resolves to {resolution.target.label}"
            )
            log.warning("Not linking %s: %s", product.label, detail)
            product.mark_synced(
                status=SyncStatus.SKIPPED_CONFLICT,
                source=SyncSource.STOREFRONT,
                at=self._clock(),
                detail=detail,
            )
            return ReconcileResult.skipped(
                source=SyncSource.STOREFRONT,
                message=detail,
                subject=product.sku,
                tier=resolution.tier,
                product_id=product.id,
                conflict=True,
            )
        if not self.policy.update_existing:
            return ReconcileResult.skipped(
                source=SyncSource.STOREFRONT,
                message="update disabled",
                subject=product.sku,
                tier=MatchTier.SKU,
                product_id=product.id,
            )
        return self.update_from_storefront(product, storefront, tier=MatchTier.SKU)

    def update_from_storefront(
        self,
        product: CanonicalProduct,
        storefront: StorefrontProduct,
        *,
        tier: MatchTier | None = None,
    ) -> ReconcileResult:
        owner = self.products.get_by_storefront_id(storefront.id)
        if owner is not None and owner is not product:
            return ReconcileResult.skipped(
                source=SyncSource.STOREFRONT,
                message=f"storefront product {storefront.id} is already linked to {owner.label}",
                subject=product.sku,
                tier=tier,
                product_id=product.id,
                conflict=True,
            )

        values = storefront_field_values(storefront, product)
        conflict: SkuConflictError | None = None
        sku = normalize_key(storefront.sku)
        if product.sku is None and sku is not None:
            conflict = self._sku_conflict(sku, product)
            if conflict is None:
                values["sku"] = sku

        changed = self._apply(product, values)
        detail = f"Updated (SKU conflict: {conflict})" if conflict is not None else None
        product.mark_synced(
            status=SyncStatus.SKIPPED_CONFLICT if conflict is not None else SyncStatus.UPDATED,
            source=SyncSource.STOREFRONT,
            at=self._clock(),
            detail=detail,
        )
        return ReconcileResult.updated(
            product,
            source=SyncSource.STOREFRONT,
            tier=tier,
            changed=changed,
            conflict=conflict is not None,
            message=detail,
        )

    def link_storefront_draft(
        self, product: CanonicalProduct, draft: StorefrontProduct
    ) -> ReconcileResult:
        """Attach a draft the storefront created for ``product``."""

        self._apply(product, {"storefront_id": draft.id})
        detail = f"Storefront draft {draft.id} created"
        product.mark_synced(
            status=SyncStatus.UPDATED,
            source=SyncSource.STOREFRONT,
            at=self._clock(),
            detail=detail,
        )
        return ReconcileResult(
            action=ReconcileAction.CREATE,
            source=SyncSource.STOREFRONT,
            product_id=product.id,
            subject=product.sku,
            changed=True,
            message=detail,
        )

    # Batch decisions -----------------------------------------------------------

    def inventory_create_command(self, product: CanonicalProduct) -> InventoryCreateCommand | None:
        """Ledger record to create for an ERP-origin product the storefront knows."""

        if (
            product.id is None
            or product.storefront_id is None
            or product.inventory_record_id is not None
            or not product.has_erp_origin
        ):
            return None
        return InventoryCreateCommand(
            product_id=product.id,
            storefront_id=product.storefront_id,
            sku=product.sku,
            barcode=product.barcode,
            quantity=ledger_quantity(product.erp_quantity),
        )

    def inventory_update_command(self, product: CanonicalProduct) -> InventoryUpdateCommand | None:
        """Quantity push for a linked product whose ledger stock drifted from the ERP."""

        if product.id is None or product.inventory_record_id is None:
            return None
        if product.has_erp_origin:
            if product.storefront_id is None:
                return None
            target = ledger_quantity(product.erp_quantity)
        elif self.policy.zero_unmatched_inventory:
            target = 0
        else:
            return None
        if product.inventory_quantity is not None and product.inventory_quantity == target:
            return None
        return InventoryUpdateCommand(
            product_id=product.id,
            inventory_record_id=product.inventory_record_id,
            quantity=target,
        )

    def apply_inventory_create(
        self,
        product: CanonicalProduct,
        command: InventoryCreateCommand,
        outcome: BatchItemOutcome,
        *,
        claimed: dict[int, CanonicalProduct] | None = None,
    ) -> ReconcileResult:
        """Link the record the ledger created.

        ``claimed`` holds the record ids already linked in the current, uncommitted
        chunk; the store cannot see those yet.
        """

        if not outcome.ok or outcome.record_id is None:
            return self._batch_failure(product, outcome)

        owner = claimed.get(outcome.record_id) if claimed is not None else None
        if owner is None:
            owner = self.products.get_by_inventory_record_id(outcome.record_id)
        if owner is not None and owner is not product:
            return self._batch_failure(
                product,
                outcome,
                message=f"inventory record {outcome.record_id} already belongs to {owner.label}",
            )

        self._apply(
            product,
            {
                "inventory_record_id": outcome.record_id,
                "inventory_quantity": quantize_amount(Decimal(command.quantity)),
            },
        )
        if claimed is not None:
            claimed[outcome.record_id] = product
        detail = f"Inventory record {outcome.record_id} created"
        product.mark_synced(
            status=SyncStatus.CREATED, source=SyncSource.INVENTORY, at=self._clock(), detail=detail
        )
        return ReconcileResult(
            action=ReconcileAction.CREATE,
            source=SyncSource.INVENTORY,
            product_id=product.id,
            subject=product.sku,
            changed=True,
            message=detail,
        )

    def apply_inventory_update(
        self,
        product: CanonicalProduct,
        command: InventoryUpdateCommand,
        outcome: BatchItemOutcome,
    ) -> ReconcileResult:
        if not outcome.ok:
            return self._batch_failure(product, outcome)

        changed = self._apply(
            product, {"inventory_quantity": quantize_amount(Decimal(command.quantity))}
        )
        product.mark_synced(
            status=SyncStatus.UPDATED, source=SyncSource.INVENTORY, at=self._clock()
        )
        return ReconcileResult.updated(
            product,
            source=SyncSource.INVENTORY,
            tier=MatchTier.INVENTORY_RECORD_ID,
            changed=changed,
        )

    # helpers -----------------------------------------------------------------

    def _sku_conflict(
        self, sku: str | None, product: CanonicalProduct | None
    ) -> SkuConflictError | None:
        if sku is None or (product is not None and sku == product.sku):
            return None
        owner_id = self.products.sku_owner(sku)
        if owner_id is None or (product is not None and owner_id == product.id):
            return None
        return SkuConflictError(sku, owner_id=owner_id)

    def _apply(self, product: CanonicalProduct, values: dict[str, object]) -> bool:
        changed = apply_fields(product, values)
        if changed:
            product.updated_at = self._clock()
            log.debug("%s: changed %s", product.label, ", ".join(changed))
        return bool(changed)

    def _batch_failure(
        self,
        product: CanonicalProduct,
        outcome: BatchItemOutcome,
        *,
        message: str | None = None,
    ) -> ReconcileResult:
        if message is not None:
            reason = message
        elif outcome.error_code and outcome.error_message:
            reason = f"{outcome.error_code}: {outcome.error_message}"
        else:
            reason = outcome.error_message or outcome.error_code or "ledger returned no record id"
        product.mark_synced(
            status=SyncStatus.ERROR, source=SyncSource.INVENTORY, at=self._clock(), error=reason
        )
        return ReconcileResult.failed(
            source=SyncSource.INVENTORY,
            message=f"{product.label}: {reason}",
            subject=product.sku,
            product_id=product.id,
        )

    async def _lookup_backfill(
        self, item: InventoryItem, product_id: int, lookup: StorefrontLookup
    ) -> StorefrontProduct | None:
        # one bounded side-fetch, no cascade
        try:
            return await lookup(product_id)
        except SOURCE_ERRORS as exc:
            log.warning("Could not backfill %s from the storefront: %s", item.label, exc)
            return None

    @staticmethod
    def _disabled(source: SyncSource, action: str, resolution: ResolvedMatch) -> ReconcileResult:
        return ReconcileResult.skipped(
            source=source,
            message=f"{action} disabled",
            subject=resolution.target.sku,
            tier=resolution.tier,
            product_id=resolution.target.id,
        )
