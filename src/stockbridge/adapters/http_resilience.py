"""Shared HTTP plumbing for the ERP, storefront and inventory-ledger connectors.

Every connector talks through a :class:`ResilientClient`; status codes are turned
into the sync error taxonomy by :func:`raise_for_status`, so the reconciliation
code only ever sees :mod:`stockbridge.domain.errors`.
"""

from __future__ import annotations

import json
from contextlib import nullcontext
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from stockbridge.config.storage import get_http_cache_path
from stockbridge.domain.errors import (
    AuthenticationError,
    RequestBudgetExceededError,
    SourceRequestError,
    TransientSourceError,
)

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, RequestContent

    from stockbridge.config.http_resilience import (
        CacheConfig,
        ResilienceConfig,
        RetryPolicy,
        ShouldCacheHook,
    )

AUTH_FAILURE_STATUSES = frozenset({401, 403})
ERROR_DETAIL_KEYS = ("message", "error", "code")
MAX_ERROR_DETAIL = 200


class RequestOptions(TypedDict, total=False):
    params: QueryParamTypes | None
    json: object
    content: RequestContent | None
    headers: HeaderTypes | None


class ResilientClient:
    """httpx client with retries, a blocking rate limit, an optional hard budget and cache.

    The rate limit waits for capacity. The budget is a second limiter that is only
    checked, so an exhausted budget raises :class:`RequestBudgetExceededError` at once.

    Transport failures that survive the retry schedule surface as
    :class:`TransientSourceError`; status handling is left to :func:`raise_for_status`.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._budget = (
            AsyncLimiter(config.budget.max_calls, config.budget.per_seconds)
            if config.budget is not None
            else None
        )
        transport = RetryTransport(retry=build_retry(config.retry))
        headers = dict(config.default_headers or {})
        base_url = config.base_url or ""

        if config.cache is None:
            self._client = httpx.AsyncClient(
                base_url=base_url,
                timeout=config.timeout_seconds,
                headers=headers,
                transport=transport,
            )
        else:
            storage, policy = _build_cache(config.cache)
            self._client = AsyncCacheClient(
                base_url=base_url,
                timeout=config.timeout_seconds,
                headers=headers,
                transport=transport,
                storage=storage,
                policy=policy,
            )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        await self._consume_budget()
        try:
            async with self._limiter or nullcontext():
                return await self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise TransientSourceError(
                f"{self.config.name}: {method} {url} failed after retries: {exc!r}"
            ) from exc

    async def _consume_budget(self) -> None:
        budget = self.config.budget
        if self._budget is None or budget is None:
            return
        if not self._budget.has_capacity():
            raise RequestBudgetExceededError(
                f"{self.config.name}: request budget of {budget.max_calls} calls "
                f"per {budget.per_seconds:g}s exhausted"
            )
        await self._budget.acquire()

    async def get(self, url: str, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("POST", url, **kwargs)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=True,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=1.0,
    )


def raise_for_status(response: httpx.Response, *, source: str) -> None:
    """Translate an unsuccessful response into the sync error taxonomy."""

    status = response.status_code
    if status < 400:
        return
    message = f"{source}: {response.request.method} {response.request.url.path} -> {status}"
    detail = _error_detail(response)
    if detail:
        message = f"{message}: {detail}"
    if status in AUTH_FAILURE_STATUSES:
        raise AuthenticationError(message)
    if status == 429 or status >= 500:
        raise TransientSourceError(message)
    raise SourceRequestError(message, status_code=status)


def _error_detail(response: httpx.Response) -> str | None:
    """WooCommerce reports ``message``/``code``; SoftOne reports ``error``."""

    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text.strip()[:MAX_ERROR_DETAIL] or None
    if not isinstance(payload, dict):
        return None
    for key in ERROR_DETAIL_KEYS:
        if payload.get(key):
            return str(payload[key])
    return None


class _JsonPredicateFilter(BaseFilter[HishelCacheResponse]):
    """Hishel response filter that asks a predicate about the decoded JSON body."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return True
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return False
        return bool(self._predicate(payload))


def _build_cache(config: CacheConfig) -> tuple[AsyncSqliteStorage, FilterPolicy | None]:
    if config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_http_cache_path())
    elif config.backend == "memory":
        database_path = ":memory:"
    else:
        raise ValueError(f"Unsupported cache backend: {config.backend}")
    storage = AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.ttl_seconds,
        refresh_ttl_on_access=False,
    )
    policy = (
        FilterPolicy(response_filters=[_JsonPredicateFilter(config.should_cache)])
        if config.should_cache is not None
        else None
    )
    return storage, policy
