"""HTTP client for the SoftOne Go item list web service."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from stockbridge.adapters.http_resilience import ResilientClient, raise_for_status
from stockbridge.adapters.pagination import Page, collect_pages
from stockbridge.domain.errors import AuthenticationError, DecodingError, SourceRequestError

from .schema import SoftOneListResponse
from .translator import translate_response

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    import httpx

    from stockbridge.config.http_resilience import ResilienceConfig
    from stockbridge.config.softone import SoftOneConfig
    from stockbridge.domain.cancellation import CancellationToken
    from stockbridge.domain.model import ErpItem

log = getLogger(__name__)

LIST_ITEMS_PATH = "list/item"
DEFAULT_MAX_PAGES = 100

# SoftOne reports rejected credentials as an application error, not a 401
_AUTH_ERROR_MARKERS = ("token", "login", "unauthori", "s1code")


class SoftOneClient:
    """ERP source backed by SoftOne Go; implements :class:`ErpSource`."""

    def __init__(
        self,
        *,
        config: SoftOneConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None
        self.max_pages = max_pages

    async def __aenter__(self) -> SoftOneClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_items(self, *, cancel: CancellationToken | None = None) -> list[ErpItem]:
        return await collect_pages(
            self.fetch_page,
            page_size=self._config.page_size,
            max_pages=self.max_pages,
            cancel=cancel,
            label="softone",
        )

    async def fetch_page(self, index: int) -> Page[ErpItem]:
        payload = {
            "appId": self._config.app_id,
            "token": self._config.token,
            "filters": self._config.filters,
            "start": index * self._config.page_size,
            "limit": self._config.page_size,
        }
        response = await self._http().post(
            LIST_ITEMS_PATH,
            json=payload,
            headers={"s1code": self._config.s1_code},
        )
        raise_for_status(response, source="softone")

        listing = self._decode(response)
        if not listing.success:
            message = f"softone: list/item rejected: {listing.error or 'unknown error'}"
            if listing.error and any(
                marker in listing.error.lower() for marker in _AUTH_ERROR_MARKERS
            ):
                raise AuthenticationError(message)
            raise SourceRequestError(message, status_code=response.status_code)

        return Page(
            items=translate_response(listing),
            raw_count=len(listing.rows),
            total=listing.total_count,
        )

    def _decode(self, response: httpx.Response) -> SoftOneListResponse:
        text = decode_body(
            response.content,
            declared=response.charset_encoding,
            fallback=self._config.fallback_encoding,
        )
        try:
            return SoftOneListResponse.model_validate_json(text)
        except ValidationError as exc:
            raise DecodingError(f"softone: unexpected list/item payload: {exc}") from exc

    def _http(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client


def decode_body(content: bytes, *, declared: str | None, fallback: str) -> str:
    """Decode with the declared charset, else UTF-8, else the legacy code page."""

    candidates = [declared] if declared else []
    candidates.extend(("utf-8", fallback))
    for encoding in candidates:
        try:
            return content.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            log.debug("softone: response is not valid %s", encoding)
    raise DecodingError(f"softone: response body is not decodable as {', '.join(candidates)}")
