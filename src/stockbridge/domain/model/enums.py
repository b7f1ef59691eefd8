"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SyncSource(StrEnum):
    """Provenance tag: which system a change came from."""

    ERP = "erp"
    STOREFRONT = "storefront"
    INVENTORY = "inventory"


class SyncStatus(StrEnum):
    """Outcome of the last sync touching a canonical product."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED_CONFLICT = "skipped_conflict"
    ERROR = "error"


class RunStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


class MatchTier(StrEnum):
    """Identifier that located a canonical product."""

    ERP_INTERNAL_ID = "erp_internal_id"
    ERP_CODE = "erp_code"
    ERP_BARCODE = "erp_barcode"
    STOREFRONT_ID = "storefront_id"
    INVENTORY_RECORD_ID = "inventory_record_id"
    SKU = "sku"


class SyncStage(StrEnum):
    """Selectable slices of the pipeline ("run phase X")."""

    ERP = "erp"
    STOREFRONT = "storefront"
    INVENTORY_CREATE = "inventory-create"
    INVENTORY_UPDATE = "inventory-update"


class SyncPhase(StrEnum):
    """Orchestrator states, in pipeline order."""

    IDLE = "idle"
    FETCH_ERP = "fetch_erp"
    RECONCILE_ERP = "reconcile_erp"
    FETCH_STOREFRONT = "fetch_storefront"
    MATCH_OR_CREATE_STOREFRONT = "match_or_create_storefront"
    FETCH_INVENTORY = "fetch_inventory"
    RECONCILE_INVENTORY_CREATE = "reconcile_inventory_create"
    RECONCILE_INVENTORY_UPDATE = "reconcile_inventory_update"
    COMPLETED = "completed"
    FAILED = "failed"
