"""SoftOne ERP configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_int, env_str, require_env_vars
from .http_resilience import RateLimit, RequestBudget, ResilienceConfig, RetryPolicy

DEFAULT_SOFTONE_BASE_URL = "https://go.s1cloud.net/s1services"
DEFAULT_SOFTONE_APP_ID = "703"
DEFAULT_SOFTONE_FILTERS = "ITEM.MTRL_ITEMTRDATA_QTY1=1&ITEM.MTRL_ITEMTRDATA_QTY1_TO=9999"
DEFAULT_SOFTONE_PAGE_SIZE = 500
DEFAULT_SOFTONE_ENCODING = "cp1253"
SOFTONE_TIMEOUT_SECONDS = 60.0

# SoftOne Go allows 60 requests per minute and 1000 per hour per token
SOFTONE_CALLS_PER_MINUTE = 60
SOFTONE_CALLS_PER_HOUR = 1000


@dataclass(frozen=True, slots=True)
class SoftOneConfig:
    """Holds SoftOne Go web-service configuration values."""

    token: str
    s1_code: str
    base_url: str = DEFAULT_SOFTONE_BASE_URL
    app_id: str = DEFAULT_SOFTONE_APP_ID
    filters: str = DEFAULT_SOFTONE_FILTERS
    page_size: int = DEFAULT_SOFTONE_PAGE_SIZE
    fallback_encoding: str = DEFAULT_SOFTONE_ENCODING

    @property
    def resilience(self) -> ResilienceConfig:
        return softone_resilience(self.base_url)


def softone_resilience(base_url: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="softone",
        base_url=base_url.rstrip("/") + "/",
        timeout_seconds=SOFTONE_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=3, backoff_factor=5.0, retry_posts=True),
        ratelimit=RateLimit(max_calls=SOFTONE_CALLS_PER_MINUTE, per_seconds=60.0),
        budget=RequestBudget(max_calls=SOFTONE_CALLS_PER_HOUR, per_seconds=3600.0),
    )


def get_softone_config() -> SoftOneConfig:
    values = require_env_vars(("SOFTONE_TOKEN", "SOFTONE_S1CODE"))
    return SoftOneConfig(
        token=values["SOFTONE_TOKEN"],
        s1_code=values["SOFTONE_S1CODE"],
        base_url=env_str("SOFTONE_BASE_URL", DEFAULT_SOFTONE_BASE_URL),
        app_id=env_str("SOFTONE_APP_ID", DEFAULT_SOFTONE_APP_ID),
        filters=env_str("SOFTONE_FILTERS", DEFAULT_SOFTONE_FILTERS),
        page_size=env_int("SOFTONE_PAGE_SIZE", DEFAULT_SOFTONE_PAGE_SIZE, minimum=1),
        fallback_encoding=env_str("SOFTONE_ENCODING", DEFAULT_SOFTONE_ENCODING),
    )
