"""Translate between ATUM payloads and inventory projections/commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stockbridge.domain.model import InventoryItem
from stockbridge.domain.ports import BatchItemOutcome

from .schema import (
    AtumCreateMetaData,
    AtumInventoryCreate,
    AtumInventoryUpdate,
    AtumUpdateMetaData,
)

if TYPE_CHECKING:
    from stockbridge.domain.ports import InventoryCreateCommand, InventoryUpdateCommand

    from .schema import AtumBatchResult, AtumInventory


def translate_inventory(inventory: AtumInventory) -> InventoryItem:
    meta = inventory.meta_data
    return InventoryItem(
        id=inventory.id,
        product_id=inventory.product_id,
        name=inventory.name,
        sku=meta.sku.strip() if meta.sku else None,
        barcode=meta.barcode.strip() if meta.barcode else None,
        stock_quantity=meta.stock_quantity,
        is_main=inventory.is_main,
    )


def build_create_item(
    command: InventoryCreateCommand,
    *,
    location_id: int,
    location_name: str,
) -> AtumInventoryCreate:
    return AtumInventoryCreate(
        product_id=command.storefront_id,
        name=location_name,
        location=[location_id],
        meta_data=AtumCreateMetaData(
            sku=command.sku,
            stock_quantity=command.quantity,
            stock_status="instock" if command.quantity > 0 else "outofstock",
            barcode=command.barcode,
        ),
    )


def build_update_item(command: InventoryUpdateCommand) -> AtumInventoryUpdate:
    return AtumInventoryUpdate(
        id=command.inventory_record_id,
        meta_data=AtumUpdateMetaData(stock_quantity=command.quantity),
    )


def translate_result(result: AtumBatchResult) -> BatchItemOutcome:
    if result.error is not None:
        return BatchItemOutcome.failure(
            result.error.message or result.error.code or "rejected by inventory ledger",
            code=result.error.code or "error",
        )
    if result.id is None:
        return BatchItemOutcome.failure("result carried no record id", code="missing_id")
    return BatchItemOutcome(record_id=result.id)
