"""Retry, throttling and caching settings for the HTTP connectors."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

ShouldCacheHook = Callable[[object], bool]

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Backoff schedule for transient failures.

    Attempt ``n`` waits ``backoff_factor * 2 ** (n - 1)`` seconds, capped by
    ``max_backoff_wait``. Only statuses in ``status_forcelist`` and the listed
    exception types are retried. POST is retried only with ``retry_posts``, which
    suits read-only POST endpoints such as the ERP listing; a storefront create
    or a ledger batch is sent once.
    """

    total: int = 4
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    retry_posts: bool = False
    status_forcelist: frozenset[int] = TRANSIENT_STATUSES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )

    @property
    def allowed_methods(self) -> frozenset[str]:
        return IDEMPOTENT_METHODS | {"POST"} if self.retry_posts else IDEMPOTENT_METHODS


@dataclass(slots=True, frozen=True)
class RateLimit:
    """Blocking limiter: callers wait until the window has capacity again."""

    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class RequestBudget:
    """Hard limiter: exceeding the budget fails instead of waiting."""

    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Response cache; ``should_cache`` receives the decoded JSON body."""

    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    ttl_seconds: float | None = None
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    budget: RequestBudget | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None
