"""Transaction boundary around the canonical store of one storefront."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from stockbridge.domain.ports.persistence import ProductRepository, SyncRunRepository


@dataclass(slots=True, frozen=True)
class SyncRepositories:
    """Repositories the reconciliation pipeline works through, all scoped to one store."""

    products: ProductRepository
    runs: SyncRunRepository


@runtime_checkable
class SyncUnitOfWork(Protocol):
    """One session over the products and run log of ``store_id``.

    ``commit`` raises :class:`~stockbridge.domain.errors.PersistenceError` when the
    store rejects the pending changes; callers roll back and carry on with the
    next record. Leaving the block with an exception rolls back.
    """

    @property
    def store_id(self) -> int: ...

    @property
    def repositories(self) -> SyncRepositories: ...

    def __enter__(self) -> SyncUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
