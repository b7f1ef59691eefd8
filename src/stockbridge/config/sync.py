"""Synchronisation defaults for the reconciliation pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from stockbridge.domain.dispatch import MAX_BATCH_SIZE

from .env import env_bool, env_float, env_int
from .errors import ConfigurationError

DEFAULT_BATCH_DELAY_SECONDS = 0.5
DEFAULT_STOREFRONT_CONCURRENCY = 10
DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 100
DEFAULT_STORE_ID = 1


@dataclass(frozen=True, slots=True)
class SyncConfig:
    store_id: int = DEFAULT_STORE_ID
    batch_size: int = MAX_BATCH_SIZE
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS
    storefront_concurrency: int = DEFAULT_STOREFRONT_CONCURRENCY
    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES
    create_missing: bool = True
    update_existing: bool = True
    zero_unmatched_inventory: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ConfigurationError(
                f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}"
            )
        if self.storefront_concurrency < 1:
            raise ConfigurationError("storefront_concurrency must be positive")
        if self.page_size < 1 or self.max_pages < 1:
            raise ConfigurationError("page_size and max_pages must be positive")
        if self.batch_delay_seconds < 0:
            raise ConfigurationError("batch_delay_seconds must not be negative")


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        store_id=env_int("STOCKBRIDGE_STORE_ID", DEFAULT_STORE_ID, minimum=1),
        batch_size=env_int("STOCKBRIDGE_BATCH_SIZE", MAX_BATCH_SIZE, minimum=1),
        batch_delay_seconds=env_float(
            "STOCKBRIDGE_BATCH_DELAY_SECONDS", DEFAULT_BATCH_DELAY_SECONDS, minimum=0.0
        ),
        storefront_concurrency=env_int(
            "STOCKBRIDGE_STOREFRONT_CONCURRENCY", DEFAULT_STOREFRONT_CONCURRENCY, minimum=1
        ),
        page_size=env_int("STOCKBRIDGE_PAGE_SIZE", DEFAULT_PAGE_SIZE, minimum=1),
        max_pages=env_int("STOCKBRIDGE_MAX_PAGES", DEFAULT_MAX_PAGES, minimum=1),
        create_missing=env_bool("STOCKBRIDGE_CREATE_MISSING", True),
        update_existing=env_bool("STOCKBRIDGE_UPDATE_EXISTING", True),
        zero_unmatched_inventory=env_bool("STOCKBRIDGE_ZERO_UNMATCHED_INVENTORY", False),
    )
