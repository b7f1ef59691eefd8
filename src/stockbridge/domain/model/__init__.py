"""Domain model for canonical products and sync runs."""

from __future__ import annotations

from .enums import MatchTier, RunStatus, SyncPhase, SyncSource, SyncStage, SyncStatus
from .product import (
    DEFAULT_STORE_ID,
    CanonicalProduct,
    ledger_quantity,
    normalize_key,
    quantize_amount,
    utcnow,
)
from .records import ErpItem, InventoryItem, StorefrontProduct
from .run import SyncRun

__all__ = [
    "DEFAULT_STORE_ID",
    "CanonicalProduct",
    "ErpItem",
    "InventoryItem",
    "MatchTier",
    "RunStatus",
    "StorefrontProduct",
    "SyncPhase",
    "SyncRun",
    "SyncSource",
    "SyncStage",
    "SyncStatus",
    "ledger_quantity",
    "normalize_key",
    "quantize_amount",
    "utcnow",
]
