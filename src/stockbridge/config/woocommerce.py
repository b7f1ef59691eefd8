"""WooCommerce storefront configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

WOOCOMMERCE_API_PATH = "wp-json/wc/v3/"
WOOCOMMERCE_TIMEOUT_SECONDS = 30.0
WOOCOMMERCE_LOOKUP_TTL_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class WooCommerceConfig:
    """Holds WooCommerce REST credentials shared by the storefront and ATUM clients."""

    url: str
    consumer_key: str
    consumer_secret: str

    @property
    def api_base_url(self) -> str:
        return f"{self.url.rstrip('/')}/{WOOCOMMERCE_API_PATH}"

    @property
    def auth_params(self) -> dict[str, str]:
        return {"consumer_key": self.consumer_key, "consumer_secret": self.consumer_secret}

    def resilience(
        self,
        *,
        name: str = "woocommerce",
        cache_predicate: ShouldCacheHook | None = None,
    ) -> ResilienceConfig:
        cache = None
        if cache_predicate is not None:
            cache = CacheConfig(
                ttl_seconds=WOOCOMMERCE_LOOKUP_TTL_SECONDS, should_cache=cache_predicate
            )
        return ResilienceConfig(
            name=name,
            base_url=self.api_base_url,
            timeout_seconds=WOOCOMMERCE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            cache=cache,
        )


def get_woocommerce_config() -> WooCommerceConfig:
    values = require_env_vars(
        ("WOOCOMMERCE_URL", "WOOCOMMERCE_CONSUMER_KEY", "WOOCOMMERCE_CONSUMER_SECRET")
    )
    return WooCommerceConfig(
        url=values["WOOCOMMERCE_URL"],
        consumer_key=values["WOOCOMMERCE_CONSUMER_KEY"],
        consumer_secret=values["WOOCOMMERCE_CONSUMER_SECRET"],
    )
