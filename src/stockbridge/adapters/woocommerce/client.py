"""HTTP client for the WooCommerce REST products API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from stockbridge.adapters.http_resilience import ResilientClient, raise_for_status
from stockbridge.domain.errors import DecodingError

from .schema import WooCommerceProduct
from .translator import build_draft, translate_product

if TYPE_CHECKING:
    from collections.abc import Callable
    from decimal import Decimal
    from types import TracebackType

    import httpx

    from stockbridge.config.http_resilience import ResilienceConfig
    from stockbridge.config.woocommerce import WooCommerceConfig
    from stockbridge.domain.model import StorefrontProduct

log = getLogger(__name__)

PRODUCTS_PATH = "products"

_PRODUCT_LIST = TypeAdapter(list[WooCommerceProduct])


def _should_cache_payload(payload: object) -> bool:
    return isinstance(payload, dict) and "id" in payload


class WooCommerceClient:
    """Storefront catalog; implements :class:`StorefrontCatalog`.

    Lookups by id go through a cached client since the inventory phase may ask
    for the same product repeatedly. Lookups by sku and draft creation always
    hit the API.
    """

    def __init__(
        self,
        *,
        config: WooCommerceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._lookup_resilience = config.resilience(
            name="woocommerce-lookup", cache_predicate=_should_cache_payload
        )
        self._resilience = config.resilience()
        self._lookup_client: ResilientClient | None = None
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> WooCommerceClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for client in (self._lookup_client, self._client):
            if client is not None:
                await client.aclose()
        self._lookup_client = None
        self._client = None

    async def find_by_sku(self, sku: str) -> StorefrontProduct | None:
        params = {**self._config.auth_params, "sku": sku}
        response = await self._http().get(PRODUCTS_PATH, params=params)
        raise_for_status(response, source="woocommerce")
        products = _decode_list(response)
        for product in products:
            if product.sku is not None and product.sku.strip() == sku:
                return translate_product(product)
        if products:
            log.warning("woocommerce: sku lookup for %r returned only non-matching products", sku)
        return None

    async def get_product(self, product_id: int) -> StorefrontProduct | None:
        response = await self._lookup_http().get(
            f"{PRODUCTS_PATH}/{product_id}", params=self._config.auth_params
        )
        if response.status_code == 404:
            return None
        raise_for_status(response, source="woocommerce")
        return translate_product(_decode_product(response))

    async def create_draft(
        self,
        *,
        sku: str,
        name: str | None,
        price: Decimal | None,
    ) -> StorefrontProduct:
        draft = build_draft(sku=sku, name=name, price=price)
        response = await self._http().post(
            PRODUCTS_PATH,
            params=self._config.auth_params,
            json=draft.model_dump(exclude_none=True),
        )
        raise_for_status(response, source="woocommerce")
        created = translate_product(_decode_product(response))
        log.info("woocommerce: created draft product %s for sku %r", created.id, sku)
        return created

    def _http(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client

    def _lookup_http(self) -> ResilientClient:
        if self._lookup_client is None:
            self._lookup_client = self._client_factory(self._lookup_resilience)
        return self._lookup_client


def _decode_product(response: httpx.Response) -> WooCommerceProduct:
    try:
        return WooCommerceProduct.model_validate_json(response.content)
    except ValidationError as exc:
        raise DecodingError(f"woocommerce: unexpected product payload: {exc}") from exc


def _decode_list(response: httpx.Response) -> list[WooCommerceProduct]:
    try:
        return _PRODUCT_LIST.validate_json(response.content)
    except ValidationError as exc:
        raise DecodingError(f"woocommerce: unexpected product list payload: {exc}") from exc
