"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import or_, select

from stockbridge.adapters.sqlalchemy.mappings import canonical_product_table, sync_run_table
from stockbridge.domain.model import CanonicalProduct, SyncRun

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import Session

_product = canonical_product_table.c
_run = sync_run_table.c


class SqlAlchemyProductRepository:
    """Canonical products scoped to a single store."""

    def __init__(self, session: Session, *, store_id: int) -> None:
        self.session = session
        self.store_id = store_id

    def add(self, entity: CanonicalProduct) -> None:
        if entity.store_id != self.store_id:
            msg = f"product belongs to store {entity.store_id}, repository to {self.store_id}"
            raise ValueError(msg)
        self.session.add(entity)

    def get(self, product_id: int) -> CanonicalProduct | None:
        return self._first(_product.id == product_id)

    def get_by_erp_internal_id(self, internal_id: str) -> CanonicalProduct | None:
        return self._first(_product.erp_internal_id == internal_id)

    def find_unlinked_by_erp_key(self, value: str) -> CanonicalProduct | None:
        return self._first(
            _product.erp_internal_id.is_(None),
            or_(_product.erp_code == value, _product.sku == value, _product.barcode == value),
        )

    def get_by_storefront_id(self, storefront_id: int) -> CanonicalProduct | None:
        return self._first(_product.storefront_id == storefront_id)

    def get_by_inventory_record_id(self, record_id: int) -> CanonicalProduct | None:
        return self._first(_product.inventory_record_id == record_id)

    def get_by_sku(self, sku: str) -> CanonicalProduct | None:
        return self._first(_product.sku == sku)

    def sku_owner(self, sku: str) -> int | None:
        stmt = (
            select(_product.id)
            .where(_product.store_id == self.store_id)
            .where(_product.sku == sku)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_without_storefront_link(self) -> list[CanonicalProduct]:
        return self._all(_product.storefront_id.is_(None))

    def list_pending_inventory_creates(self) -> list[CanonicalProduct]:
        return self._all(
            _product.storefront_id.is_not(None),
            _product.inventory_record_id.is_(None),
            or_(_product.erp_internal_id.is_not(None), _product.erp_code.is_not(None)),
        )

    def list_inventory_linked(self) -> list[CanonicalProduct]:
        return self._all(_product.inventory_record_id.is_not(None))

    def list_all(
        self,
        *,
        sku: str | None = None,
        limit: int | None = None,
    ) -> list[CanonicalProduct]:
        stmt = self._select()
        if sku is not None:
            stmt = stmt.where(_product.sku.contains(sku, autoescape=True))
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def _select(self, *criteria: ColumnElement[bool]) -> Select[tuple[CanonicalProduct]]:
        return (
            select(CanonicalProduct)
            .where(_product.store_id == self.store_id, *criteria)
            .order_by(_product.id)
        )

    def _first(self, *criteria: ColumnElement[bool]) -> CanonicalProduct | None:
        return self.session.execute(self._select(*criteria).limit(1)).scalar_one_or_none()

    def _all(self, *criteria: ColumnElement[bool]) -> list[CanonicalProduct]:
        return list(self.session.execute(self._select(*criteria)).scalars())


class SqlAlchemySyncRunRepository:
    def __init__(self, session: Session, *, store_id: int) -> None:
        self.session = session
        self.store_id = store_id

    def add(self, entity: SyncRun) -> None:
        self.session.add(entity)

    def get(self, run_id: int) -> SyncRun | None:
        stmt = select(SyncRun).where(_run.id == run_id, _run.store_id == self.store_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def latest(self, *, limit: int = 10) -> list[SyncRun]:
        stmt = (
            select(SyncRun)
            .where(_run.store_id == self.store_id)
            .order_by(_run.started_at.desc(), _run.id.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())
