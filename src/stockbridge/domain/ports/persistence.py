"""Ports for persisting canonical products and run logs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from stockbridge.domain.model import CanonicalProduct, SyncRun


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ProductRepository(Repository[CanonicalProduct], Protocol):
    """Canonical products of one store, queryable by any single identifier."""

    def get(self, product_id: int) -> CanonicalProduct | None: ...

    def get_by_erp_internal_id(self, internal_id: str) -> CanonicalProduct | None: ...

    def find_unlinked_by_erp_key(self, value: str) -> CanonicalProduct | None:
        """First product without an ERP internal id whose code, sku or barcode is ``value``."""
        ...

    def get_by_storefront_id(self, storefront_id: int) -> CanonicalProduct | None: ...

    def get_by_inventory_record_id(self, record_id: int) -> CanonicalProduct | None: ...

    def get_by_sku(self, sku: str) -> CanonicalProduct | None: ...

    def sku_owner(self, sku: str) -> int | None: ...

    def list_without_storefront_link(self) -> list[CanonicalProduct]: ...

    def list_pending_inventory_creates(self) -> list[CanonicalProduct]:
        """ERP-origin products with a storefront id but no inventory record."""
        ...

    def list_inventory_linked(self) -> list[CanonicalProduct]: ...

    def list_all(
        self,
        *,
        sku: str | None = None,
        limit: int | None = None,
    ) -> list[CanonicalProduct]: ...


@runtime_checkable
class SyncRunRepository(Repository[SyncRun], Protocol):
    def get(self, run_id: int) -> SyncRun | None: ...

    def latest(self, *, limit: int = 10) -> list[SyncRun]: ...
