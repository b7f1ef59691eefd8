"""Entity resolution and per-record reconciliation."""

from __future__ import annotations

from .contracts import NoMatch, ReconcileAction, ReconcileResult, Resolution, ResolvedMatch
from .engine import ReconciliationEngine, ReconciliationPolicy, StorefrontLookup
from .resolve import resolve_erp_item, resolve_inventory_item, resolve_storefront_product

__all__ = [
    "NoMatch",
    "ReconcileAction",
    "ReconcileResult",
    "ReconciliationEngine",
    "ReconciliationPolicy",
    "Resolution",
    "ResolvedMatch",
    "StorefrontLookup",
    "resolve_erp_item",
    "resolve_inventory_item",
    "resolve_storefront_product",
]
