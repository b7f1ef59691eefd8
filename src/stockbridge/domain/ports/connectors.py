"""Ports for the three source systems.

Every connector is async; full-dataset fetches are paginated sequentially by the
adapter and accept a :class:`CancellationToken` checked between pages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from decimal import Decimal

    from stockbridge.domain.cancellation import CancellationToken
    from stockbridge.domain.model import ErpItem, InventoryItem, StorefrontProduct


@dataclass(slots=True, frozen=True, kw_only=True)
class InventoryCreateCommand:
    """Create a ledger record for a canonical product at the configured location."""

    product_id: int
    storefront_id: int
    sku: str | None
    barcode: str | None
    quantity: int


@dataclass(slots=True, frozen=True, kw_only=True)
class InventoryUpdateCommand:
    """Set the stock quantity of an existing ledger record."""

    product_id: int
    inventory_record_id: int
    quantity: int


@dataclass(slots=True, frozen=True, kw_only=True)
class BatchItemOutcome:
    """Per-item result of a batch call: a record id or an error object."""

    record_id: int | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_code is None and self.error_message is None

    @classmethod
    def failure(cls, message: str, *, code: str | None = None) -> BatchItemOutcome:
        return cls(error_code=code, error_message=message)


@dataclass(slots=True, frozen=True, kw_only=True)
class BatchOutcome:
    creates: tuple[BatchItemOutcome, ...] = ()
    updates: tuple[BatchItemOutcome, ...] = ()


@runtime_checkable
class ErpSource(Protocol):
    """Authoritative product master data and stock."""

    async def fetch_items(self, *, cancel: CancellationToken | None = None) -> list[ErpItem]: ...


@runtime_checkable
class StorefrontCatalog(Protocol):
    """Storefront product catalog; lookups and draft creation only."""

    async def find_by_sku(self, sku: str) -> StorefrontProduct | None: ...

    async def get_product(self, product_id: int) -> StorefrontProduct | None: ...

    async def create_draft(
        self,
        *,
        sku: str,
        name: str | None,
        price: Decimal | None,
    ) -> StorefrontProduct: ...


@runtime_checkable
class InventoryLedger(Protocol):
    """Per-location inventory records with a batch write endpoint."""

    async def fetch_items(
        self, *, cancel: CancellationToken | None = None
    ) -> list[InventoryItem]: ...

    async def submit_batch(
        self,
        *,
        creates: Sequence[InventoryCreateCommand] = (),
        updates: Sequence[InventoryUpdateCommand] = (),
    ) -> BatchOutcome: ...
