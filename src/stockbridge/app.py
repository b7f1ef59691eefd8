"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable
from contextlib import AsyncExitStack, contextmanager
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from stockbridge.adapters.atum import AtumClient
from stockbridge.adapters.softone import SoftOneClient
from stockbridge.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    is_started,
    startup,
)
from stockbridge.adapters.woocommerce import WooCommerceClient
from stockbridge.config import (
    ConfigurationError,
    SyncConfig,
    get_atum_config,
    get_softone_config,
    get_sync_config,
    get_woocommerce_config,
)
from stockbridge.domain.cancellation import CancellationToken
from stockbridge.domain.orchestrator import SyncOrchestrator, SyncReport, SyncSources
from stockbridge.domain.ports.unit_of_work import SyncUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from stockbridge.domain.model import CanonicalProduct, SyncRun, SyncStage

UnitOfWorkFactory = Callable[[], SyncUnitOfWork]

log = getLogger(__name__)


def build_sources(config: SyncConfig) -> SyncSources:
    """Create every connector whose configuration is present.

    A missing or invalid connector configuration is not an error here: the
    orchestrator fails the run only if a selected stage needs that connector.
    """

    sources = SyncSources()
    try:
        sources.erp = SoftOneClient(config=get_softone_config(), max_pages=config.max_pages)
    except ConfigurationError as exc:
        sources.unavailable["erp"] = str(exc)

    try:
        woocommerce = get_woocommerce_config()
    except ConfigurationError as exc:
        sources.unavailable["storefront"] = str(exc)
        sources.unavailable["inventory"] = str(exc)
        return sources

    sources.storefront = WooCommerceClient(config=woocommerce)
    try:
        sources.inventory = AtumClient(
            config=get_atum_config(woocommerce=woocommerce),
            page_size=config.page_size,
            max_pages=config.max_pages,
        )
    except ConfigurationError as exc:
        sources.unavailable["inventory"] = str(exc)
    return sources


async def run_sync_async(
    *,
    stages: Iterable[SyncStage] | None = None,
    config: SyncConfig | None = None,
    sources: SyncSources | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    cancel: CancellationToken | None = None,
) -> SyncReport:
    """Run the reconciliation pipeline; connectors built here are closed afterwards."""

    effective_config = config or get_sync_config()
    token = cancel or CancellationToken()
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory(
        effective_config.store_id
    )

    async with AsyncExitStack() as stack:
        if sources is None:
            sources = build_sources(effective_config)
            for client in (sources.erp, sources.storefront, sources.inventory):
                if isinstance(client, SoftOneClient | WooCommerceClient | AtumClient):
                    await stack.enter_async_context(client)

        orchestrator = SyncOrchestrator(
            sources=sources,
            unit_of_work_factory=effective_uow,
            config=effective_config,
            stages=stages,
            cancel=token,
        )
        with _cancel_on_sigint(token):
            return await orchestrator.run()


def run_sync(
    *,
    stages: Iterable[SyncStage] | None = None,
    store_id: int | None = None,
    config: SyncConfig | None = None,
    sources: SyncSources | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SyncReport:
    """Synchronise ERP, storefront and inventory ledger using the configured adapters."""

    effective_config = config or get_sync_config()
    if store_id is not None:
        effective_config = replace(effective_config, store_id=store_id)
    if unit_of_work_factory is None:
        _ensure_started()

    selected = tuple(stages) if stages is not None else None
    log.info(
        "Starting sync: store=%s, stages=%s",
        effective_config.store_id,
        ", ".join(selected) if selected else "all",
    )
    report = asyncio.run(
        run_sync_async(
            stages=selected,
            config=effective_config,
            sources=sources,
            unit_of_work_factory=unit_of_work_factory,
        )
    )
    log.info("Finished sync run %s: %s", report.run_id, report.status)
    return report


def list_runs(
    *,
    store_id: int | None = None,
    limit: int = 10,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[SyncRun]:
    """Most recent runs first."""

    factory = unit_of_work_factory or _default_unit_of_work_factory(_store_id(store_id))
    if unit_of_work_factory is None:
        _ensure_started()
    with factory() as uow:
        return uow.repositories.runs.latest(limit=limit)


def list_products(
    *,
    store_id: int | None = None,
    sku: str | None = None,
    limit: int | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[CanonicalProduct]:
    factory = unit_of_work_factory or _default_unit_of_work_factory(_store_id(store_id))
    if unit_of_work_factory is None:
        _ensure_started()
    with factory() as uow:
        return uow.repositories.products.list_all(sku=sku, limit=limit)


def _store_id(store_id: int | None) -> int:
    return store_id if store_id is not None else get_sync_config().store_id


def _ensure_started() -> None:
    if not is_started():
        startup()


def _default_unit_of_work_factory(store_id: int) -> UnitOfWorkFactory:
    def factory() -> SyncUnitOfWork:
        return SqlAlchemySyncUnitOfWork(store_id=store_id)

    return factory


@contextmanager
def _cancel_on_sigint(token: CancellationToken) -> Iterator[None]:
    """Turn Ctrl+C into cooperative cancellation while the pipeline runs."""

    loop = asyncio.get_running_loop()

    def request_cancel() -> None:
        log.warning("Interrupt received; cancelling after the current step")
        token.cancel("cancelled by user")

    installed = True
    try:
        loop.add_signal_handler(signal.SIGINT, request_cancel)
    except (NotImplementedError, RuntimeError):
        # not supported on this platform or outside the main thread
        installed = False
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)
