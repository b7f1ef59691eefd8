from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from stockbridge.app import list_products, list_runs, run_sync
from stockbridge.config import configure_logging
from stockbridge.domain.model import RunStatus, SyncStage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stockbridge.domain.model import CanonicalProduct, SyncRun

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_FAILED = 1
EXIT_COMPLETED_WITH_ERRORS = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="stockbridge",
        description="Reconcile ERP, storefront and inventory-ledger products",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Run the reconciliation pipeline")
    sync.add_argument(
        "--phase",
        dest="phases",
        action="append",
        choices=[stage.value for stage in SyncStage],
        help="Run only this stage (repeatable); defaults to the full pipeline",
    )
    sync.add_argument(
        "--store-id",
        type=int,
        help="Store to synchronise (defaults to STOCKBRIDGE_STORE_ID)",
    )

    runs = subparsers.add_parser("runs", help="Show the most recent sync runs")
    runs.add_argument("--limit", type=int, default=10, help="Number of runs (default: %(default)s)")
    runs.add_argument("--store-id", type=int, help="Store to inspect")

    products = subparsers.add_parser("products", help="List canonical products")
    products.add_argument("--sku", type=str, help="Only products whose sku contains this text")
    products.add_argument("--limit", type=int, help="Maximum number of products to list")
    products.add_argument("--store-id", type=int, help="Store to inspect")

    args = parser.parse_args(list(argv))
    if getattr(args, "limit", None) is not None and args.limit < 1:
        parser.error("--limit must be positive")
    if getattr(args, "store_id", None) is not None and args.store_id < 1:
        parser.error("--store-id must be positive")
    return args


def _format_run(run: SyncRun) -> str:
    duration = run.duration
    seconds = f"{duration.total_seconds():.1f}s" if duration is not None else "-"
    line = (
        f"#{run.id} {run.started_at:%Y-%m-%d %H:%M:%S} {run.status} [{run.stages}] "
        f"{seconds} total={run.total} created={run.created} updated={run.updated} "
        f"unchanged={run.unchanged} skipped={run.skipped} conflicts={run.conflicts} "
        f"errors={run.errors}"
    )
    if run.error_details:
        line = f"{line}\n    {run.error_details.replace(chr(10), chr(10) + '    ')}"
    return line


def _format_product(product: CanonicalProduct) -> str:
    return (
        f"#{product.id} sku={product.sku or '-'} erp={product.erp_internal_id or '-'} "
        f"storefront={product.storefront_id or '-'} inventory={product.inventory_record_id or '-'} "
        f"qty={product.erp_quantity if product.erp_quantity is not None else '-'}"
        f"/{product.inventory_quantity if product.inventory_quantity is not None else '-'} "
        f"{product.name or ''} [{product.last_sync_status or 'never synced'}]"
    )


def _exit_code(status: RunStatus) -> int:
    match status:
        case RunStatus.COMPLETED:
            return EXIT_OK
        case RunStatus.COMPLETED_WITH_ERRORS:
            return EXIT_COMPLETED_WITH_ERRORS
        case _:
            return EXIT_FAILED


def main(argv: Sequence[str] | None = None) -> int:
    """Main application entry point; returns the process exit code."""

    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "sync":
            stages = [SyncStage(value) for value in parsed_args.phases or ()]
            report = run_sync(stages=stages or None, store_id=parsed_args.store_id)
            return _exit_code(report.status)
        if parsed_args.command == "runs":
            for run in list_runs(store_id=parsed_args.store_id, limit=parsed_args.limit):
                print(_format_run(run))  # noqa: T201
            return EXIT_OK
        if parsed_args.command == "products":
            products = list_products(
                store_id=parsed_args.store_id, sku=parsed_args.sku, limit=parsed_args.limit
            )
            for product in products:
                print(_format_product(product))  # noqa: T201
            return EXIT_OK
        raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error during sync")
        return EXIT_FAILED


def run() -> None:
    """Console script entry point."""

    load_dotenv()
    sys.exit(main())


if __name__ == "__main__":
    run()
