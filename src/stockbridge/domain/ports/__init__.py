"""Domain port definitions for adapters."""

from __future__ import annotations

from .connectors import (
    BatchItemOutcome,
    BatchOutcome,
    ErpSource,
    InventoryCreateCommand,
    InventoryLedger,
    InventoryUpdateCommand,
    StorefrontCatalog,
)
from .persistence import ProductRepository, Repository, SyncRunRepository
from .unit_of_work import SyncRepositories, SyncUnitOfWork

__all__ = [
    "BatchItemOutcome",
    "BatchOutcome",
    "ErpSource",
    "InventoryCreateCommand",
    "InventoryLedger",
    "InventoryUpdateCommand",
    "ProductRepository",
    "Repository",
    "StorefrontCatalog",
    "SyncRepositories",
    "SyncRunRepository",
    "SyncUnitOfWork",
]
