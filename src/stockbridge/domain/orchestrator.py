"""Sync orchestrator: the ordered, multi-phase reconciliation pipeline.

``Idle -> FetchErp -> ReconcileErp -> FetchStorefront -> MatchOrCreateStorefront
-> FetchInventory -> ReconcileInventoryCreate -> ReconcileInventoryUpdate ->
Completed``, or ``Failed`` from any state on missing configuration, rejected
credentials, an exhausted request budget or cancellation.

Each phase drains its source before the next one starts. Canonical writes are
serialized: the single-record path commits after every record, the batch path
after every chunk. Storefront lookups and draft creation run concurrently under
a semaphore because they only read or write the remote side.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from stockbridge.config import ConfigurationError, MissingConfigurationError, SyncConfig
from stockbridge.domain.cancellation import CancellationToken
from stockbridge.domain.dispatch import InventoryBatchDispatcher
from stockbridge.domain.errors import FATAL_SYNC_ERRORS, SOURCE_ERRORS, PersistenceError
from stockbridge.domain.model import RunStatus, SyncPhase, SyncRun, SyncSource, SyncStage, utcnow
from stockbridge.domain.reconciliation import (
    ReconcileResult,
    ReconciliationEngine,
    ReconciliationPolicy,
)
from stockbridge.domain.statistics import RunStatistics

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from stockbridge.domain.model import (
        CanonicalProduct,
        ErpItem,
        InventoryItem,
        StorefrontProduct,
    )
    from stockbridge.domain.ports import (
        ErpSource,
        InventoryLedger,
        StorefrontCatalog,
        SyncUnitOfWork,
    )

log = getLogger(__name__)

type SyncUnitOfWorkFactory = Callable[[], SyncUnitOfWork]

ALL_STAGES: tuple[SyncStage, ...] = tuple(SyncStage)
INVENTORY_STAGES = frozenset({SyncStage.INVENTORY_CREATE, SyncStage.INVENTORY_UPDATE})


@dataclass(slots=True)
class SyncSources:
    """Connectors available to a run; ``unavailable`` explains the missing ones."""

    erp: ErpSource | None = None
    storefront: StorefrontCatalog | None = None
    inventory: InventoryLedger | None = None
    unavailable: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class SyncReport:
    run_id: int | None
    status: RunStatus
    statistics: RunStatistics
    phases: tuple[SyncPhase, ...]


@dataclass(slots=True)
class _RunContext:
    uow: SyncUnitOfWork
    run: SyncRun
    stats: RunStatistics
    engine: ReconciliationEngine


class SyncOrchestrator:
    def __init__(
        self,
        *,
        sources: SyncSources,
        unit_of_work_factory: SyncUnitOfWorkFactory,
        config: SyncConfig | None = None,
        stages: Iterable[SyncStage] | None = None,
        cancel: CancellationToken | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.sources = sources
        self.unit_of_work_factory = unit_of_work_factory
        self.config = config or SyncConfig()
        selected = set(stages) if stages is not None else set(ALL_STAGES)
        self.stages = tuple(stage for stage in ALL_STAGES if stage in selected)
        self.cancel = cancel or CancellationToken()
        self._clock = clock
        self.phase = SyncPhase.IDLE
        self.history: list[SyncPhase] = []

    async def run(self) -> SyncReport:
        """Execute the selected stages and return the finalized run summary."""

        if self.phase is not SyncPhase.IDLE:
            raise RuntimeError("an orchestrator instance runs exactly once")

        stats = RunStatistics()
        with self.unit_of_work_factory() as uow:
            run = SyncRun(
                store_id=self.config.store_id,
                started_at=self._clock(),
                stages=",".join(stage.value for stage in self.stages),
            )
            uow.repositories.runs.add(run)
            uow.commit()
            engine = ReconciliationEngine(
                uow.repositories.products,
                store_id=self.config.store_id,
                policy=ReconciliationPolicy(
                    create_missing=self.config.create_missing,
                    update_existing=self.config.update_existing,
                    zero_unmatched_inventory=self.config.zero_unmatched_inventory,
                ),
                clock=self._clock,
            )
            context = _RunContext(uow=uow, run=run, stats=stats, engine=engine)
            log.info(
                "Starting sync run %s (store %s, stages: %s)", run.id, run.store_id, run.stages
            )

            try:
                self._check_preconditions()
                await self._run_phases(context)
            except (ConfigurationError, *FATAL_SYNC_ERRORS) as exc:
                log.error("Sync run %s failed: %s", run.id, exc)
                self._finish_failed(context, str(exc))
            except asyncio.CancelledError:
                self._finish_failed(context, "cancelled")
                raise
            except Exception as exc:
                log.exception("Sync run %s aborted by an unexpected error", run.id)
                self._finish_failed(context, f"unexpected error: {exc!r}")
                raise
            else:
                self._finish_completed(context)

            return SyncReport(
                run_id=run.id,
                status=run.status,
                statistics=stats,
                phases=tuple(self.history),
            )

    # phases ------------------------------------------------------------------

    async def _run_phases(self, context: _RunContext) -> None:
        if SyncStage.ERP in self.stages:
            erp = self._require(self.sources.erp, "erp")
            self._enter(SyncPhase.FETCH_ERP)
            erp_items = await self._fetch(
                context, "ERP", lambda: erp.fetch_items(cancel=self.cancel)
            )
            if erp_items is not None:
                self._enter(SyncPhase.RECONCILE_ERP)
                self._reconcile_erp(context, erp_items)

        if SyncStage.STOREFRONT in self.stages:
            catalog = self._require(self.sources.storefront, "storefront")
            self._enter(SyncPhase.FETCH_STOREFRONT)
            lookups = await self._lookup_storefront(context, catalog)
            self._enter(SyncPhase.MATCH_OR_CREATE_STOREFRONT)
            await self._match_or_create_storefront(context, catalog, lookups)

        if INVENTORY_STAGES.intersection(self.stages):
            ledger = self._require(self.sources.inventory, "inventory")
            self._enter(SyncPhase.FETCH_INVENTORY)
            ledger_items = await self._fetch(
                context, "inventory", lambda: ledger.fetch_items(cancel=self.cancel)
            )
            if ledger_items is None:
                log.warning("Skipping inventory reconciliation: ledger state unknown")
                return

            if SyncStage.INVENTORY_CREATE in self.stages:
                self._enter(SyncPhase.RECONCILE_INVENTORY_CREATE)
                await self._reconcile_inventory_items(context, ledger_items)
                await self._dispatch_inventory_creates(context, ledger)

            if SyncStage.INVENTORY_UPDATE in self.stages:
                self._enter(SyncPhase.RECONCILE_INVENTORY_UPDATE)
                await self._dispatch_inventory_updates(context, ledger)

    async def _fetch[T](
        self,
        context: _RunContext,
        label: str,
        fetch: Callable[[], Awaitable[list[T]]],
    ) -> list[T] | None:
        try:
            items = await fetch()
        except SOURCE_ERRORS as exc:
            log.error("%s fetch failed, skipping dependent phases: %s", label, exc)
            context.stats.record_failure(f"{label} fetch failed: {exc}")
            self._checkpoint(context)
            return None
        log.info("Fetched %d %s records", len(items), label)
        return items

    def _reconcile_erp(self, context: _RunContext, items: list[ErpItem]) -> None:
        for item in items:
            self.cancel.raise_if_cancelled()
            self._commit_record(context, context.engine.reconcile_erp_item(item))
        self._checkpoint(context)

    async def _lookup_storefront(
        self,
        context: _RunContext,
        catalog: StorefrontCatalog,
    ) -> list[tuple[CanonicalProduct, StorefrontProduct | None]]:
        candidates: list[CanonicalProduct] = []
        for product in context.uow.repositories.products.list_without_storefront_link():
            if product.sku is None:
                context.stats.record(
                    ReconcileResult.skipped(
                        source=SyncSource.STOREFRONT,
                        message="no sku to look up in the storefront",
                        subject=product.label,
                        product_id=product.id,
                    )
                )
                continue
            candidates.append(product)

        semaphore = asyncio.Semaphore(self.config.storefront_concurrency)

        async def lookup(sku: str) -> StorefrontProduct | None:
            async with semaphore:
                self.cancel.raise_if_cancelled()
                return await catalog.find_by_sku(sku)

        outcomes = await asyncio.gather(
            *(lookup(product.sku) for product in candidates if product.sku is not None),
            return_exceptions=True,
        )
        found: list[tuple[CanonicalProduct, StorefrontProduct | None]] = []
        for product, outcome in zip(candidates, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                self._raise_unless_source_error(outcome)
                context.stats.record(
                    ReconcileResult.failed(
                        source=SyncSource.STOREFRONT,
                        message=f"{product.label}: storefront lookup failed: {outcome}",
                        subject=product.sku,
                        product_id=product.id,
                    )
                )
                continue
            found.append((product, outcome))
        log.info("Looked up %d unlinked products in the storefront", len(candidates))
        return found

    async def _match_or_create_storefront(
        self,
        context: _RunContext,
        catalog: StorefrontCatalog,
        lookups: list[tuple[CanonicalProduct, StorefrontProduct | None]],
    ) -> None:
        missing: list[CanonicalProduct] = []
        for product, storefront in lookups:
            self.cancel.raise_if_cancelled()
            if storefront is None:
                missing.append(product)
                continue
            self._commit_record(context, context.engine.link_storefront_match(product, storefront))

        if not self.config.create_missing:
            for product in missing:
                context.stats.record(
                    ReconcileResult.skipped(
                        source=SyncSource.STOREFRONT,
                        message="storefront creation disabled",
                        subject=product.sku,
                        product_id=product.id,
                    )
                )
            self._checkpoint(context)
            return

        semaphore = asyncio.Semaphore(self.config.storefront_concurrency)

        async def create(product: CanonicalProduct, sku: str) -> StorefrontProduct:
            async with semaphore:
                self.cancel.raise_if_cancelled()
                return await catalog.create_draft(
                    sku=sku, name=product.name, price=product.retail_price
                )

        drafts = await asyncio.gather(
            *(create(product, product.sku) for product in missing if product.sku is not None),
            return_exceptions=True,
        )
        for product, draft in zip(missing, drafts, strict=True):
            if isinstance(draft, BaseException):
                self._raise_unless_source_error(draft)
                context.stats.record(
                    ReconcileResult.failed(
                        source=SyncSource.STOREFRONT,
                        message=f"{product.label}: storefront draft creation failed: {draft}",
                        subject=product.sku,
                        product_id=product.id,
                    )
                )
                continue
            self._commit_record(context, context.engine.link_storefront_draft(product, draft))
        self._checkpoint(context)

    async def _reconcile_inventory_items(
        self, context: _RunContext, items: list[InventoryItem]
    ) -> None:
        catalog = self.sources.storefront
        lookup = catalog.get_product if catalog is not None else None
        for item in items:
            self.cancel.raise_if_cancelled()
            result = await context.engine.reconcile_inventory_item(item, storefront_lookup=lookup)
            self._commit_record(context, result)
        self._checkpoint(context)

    async def _dispatch_inventory_creates(
        self, context: _RunContext, ledger: InventoryLedger
    ) -> None:
        products = context.uow.repositories.products
        commands = [
            command
            for product in products.list_pending_inventory_creates()
            if (command := context.engine.inventory_create_command(product)) is not None
        ]
        log.info("%d products need an inventory record", len(commands))
        async for chunk in self._dispatcher(ledger).dispatch_creates(commands):
            results: list[ReconcileResult] = []
            claimed: dict[int, CanonicalProduct] = {}
            for dispatched in chunk:
                product = products.get(dispatched.command.product_id)
                if product is None:
                    results.append(self._vanished(dispatched.command.product_id))
                    continue
                results.append(
                    context.engine.apply_inventory_create(
                        product, dispatched.command, dispatched.outcome, claimed=claimed
                    )
                )
            self._commit_chunk(context, results)

    async def _dispatch_inventory_updates(
        self, context: _RunContext, ledger: InventoryLedger
    ) -> None:
        products = context.uow.repositories.products
        commands = [
            command
            for product in products.list_inventory_linked()
            if (command := context.engine.inventory_update_command(product)) is not None
        ]
        log.info("%d inventory records need a quantity update", len(commands))
        async for chunk in self._dispatcher(ledger).dispatch_updates(commands):
            results: list[ReconcileResult] = []
            for dispatched in chunk:
                product = products.get(dispatched.command.product_id)
                if product is None:
                    results.append(self._vanished(dispatched.command.product_id))
                    continue
                results.append(
                    context.engine.apply_inventory_update(
                        product, dispatched.command, dispatched.outcome
                    )
                )
            self._commit_chunk(context, results)

    # transaction and state helpers --------------------------------------------

    def _commit_record(self, context: _RunContext, result: ReconcileResult) -> None:
        try:
            context.uow.commit()
        except PersistenceError as exc:
            context.uow.rollback()
            log.warning("Discarded changes for %s: %s", result.subject or "record", exc)
            result = result.as_error(f"{result.subject or 'record'}: {exc}")
        context.stats.record(result)

    def _commit_chunk(self, context: _RunContext, results: list[ReconcileResult]) -> None:
        try:
            context.uow.commit()
        except PersistenceError as exc:
            context.uow.rollback()
            log.warning("Discarded a chunk of %d batch results: %s", len(results), exc)
            results = [
                result.as_error(f"{result.subject or 'record'}: {exc}") for result in results
            ]
        for result in results:
            context.stats.record(result)
        self._checkpoint(context)

    def _checkpoint(self, context: _RunContext) -> None:
        context.stats.apply_to(context.run)
        context.uow.commit()

    def _finish_completed(self, context: _RunContext) -> None:
        self._enter(SyncPhase.COMPLETED)
        status = (
            RunStatus.COMPLETED_WITH_ERRORS if context.stats.has_errors else RunStatus.COMPLETED
        )
        context.run.finish(status=status, at=self._clock())
        self._checkpoint(context)
        stats = context.stats
        log.info(
            "Sync run %s %s: total=%d, created=%d, updated=%d, unchanged=%d, skipped=%d, "
            "conflicts=%d, errors=%d",
            context.run.id,
            status,
            stats.total,
            stats.created,
            stats.updated,
            stats.unchanged,
            stats.skipped,
            stats.conflicts,
            stats.errors,
        )

    def _finish_failed(self, context: _RunContext, reason: str) -> None:
        context.uow.rollback()
        self._enter(SyncPhase.FAILED)
        context.stats.record_failure(reason)
        context.run.finish(status=RunStatus.FAILED, at=self._clock())
        self._checkpoint(context)

    def _enter(self, phase: SyncPhase) -> None:
        self.phase = phase
        self.history.append(phase)
        log.info("Phase: %s", phase)

    def _check_preconditions(self) -> None:
        needed: dict[str, object | None] = {}
        if SyncStage.ERP in self.stages:
            needed["erp"] = self.sources.erp
        if SyncStage.STOREFRONT in self.stages:
            needed["storefront"] = self.sources.storefront
        if INVENTORY_STAGES.intersection(self.stages):
            needed["inventory"] = self.sources.inventory
        for name, source in needed.items():
            self._require(source, name)

    def _require[T](self, source: T | None, name: str) -> T:
        if source is None:
            reason = self.sources.unavailable.get(name, "not configured")
            raise MissingConfigurationError(f"{name} connector unavailable: {reason}")
        return source

    def _dispatcher(self, ledger: InventoryLedger) -> InventoryBatchDispatcher:
        return InventoryBatchDispatcher(
            ledger,
            batch_size=self.config.batch_size,
            delay_seconds=self.config.batch_delay_seconds,
            cancel=self.cancel,
        )

    @staticmethod
    def _raise_unless_source_error(exc: BaseException) -> None:
        if not isinstance(exc, SOURCE_ERRORS):
            raise exc

    @staticmethod
    def _vanished(product_id: int) -> ReconcileResult:
        return ReconcileResult.failed(
            source=SyncSource.INVENTORY,
            message=f"product #{product_id} disappeared before its batch result was applied",
            product_id=product_id,
        )
