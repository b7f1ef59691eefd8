"""Application configuration helpers."""

from __future__ import annotations

from .atum import AtumConfig, get_atum_config
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import (
    CacheConfig,
    RateLimit,
    RequestBudget,
    ResilienceConfig,
    RetryPolicy,
)
from .logging import configure_logging
from .softone import SoftOneConfig, get_softone_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_http_cache_path,
    get_storage_config,
)
from .sync import MAX_BATCH_SIZE, SyncConfig, get_sync_config
from .woocommerce import WooCommerceConfig, get_woocommerce_config

__all__ = [
    "MAX_BATCH_SIZE",
    "AtumConfig",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "RequestBudget",
    "ResilienceConfig",
    "RetryPolicy",
    "SoftOneConfig",
    "StorageConfig",
    "SyncConfig",
    "WooCommerceConfig",
    "configure_logging",
    "get_atum_config",
    "get_database_config",
    "get_http_cache_path",
    "get_softone_config",
    "get_storage_config",
    "get_sync_config",
    "get_woocommerce_config",
    "require_env_vars",
]
