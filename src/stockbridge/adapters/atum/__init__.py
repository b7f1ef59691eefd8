"""ATUM multi-inventory adapter package."""

from __future__ import annotations

from .client import AtumClient
from .schema import (
    AtumBatchRequest,
    AtumBatchResponse,
    AtumBatchResult,
    AtumInventory,
    AtumInventoryCreate,
    AtumInventoryUpdate,
)
from .translator import build_create_item, build_update_item, translate_inventory, translate_result

__all__ = [
    "AtumBatchRequest",
    "AtumBatchResponse",
    "AtumBatchResult",
    "AtumClient",
    "AtumInventory",
    "AtumInventoryCreate",
    "AtumInventoryUpdate",
    "build_create_item",
    "build_update_item",
    "translate_inventory",
    "translate_result",
]
