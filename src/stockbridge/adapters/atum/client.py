"""HTTP client for the ATUM inventories endpoints of a WooCommerce store."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from stockbridge.adapters.http_resilience import ResilientClient, raise_for_status
from stockbridge.adapters.pagination import Page, collect_pages
from stockbridge.domain.errors import DecodingError
from stockbridge.domain.ports import BatchOutcome

from .schema import AtumBatchRequest, AtumBatchResponse, AtumInventory
from .translator import build_create_item, build_update_item, translate_inventory, translate_result

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    import httpx

    from stockbridge.config.atum import AtumConfig
    from stockbridge.config.http_resilience import ResilienceConfig
    from stockbridge.domain.cancellation import CancellationToken
    from stockbridge.domain.model import InventoryItem
    from stockbridge.domain.ports import InventoryCreateCommand, InventoryUpdateCommand

log = getLogger(__name__)

INVENTORIES_PATH = "atum/inventories"
BATCH_PATH = "atum/inventories/batch"
DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 100

_INVENTORY_LIST = TypeAdapter(list[AtumInventory])


class AtumClient:
    """Inventory ledger for one ATUM location; implements :class:`InventoryLedger`."""

    def __init__(
        self,
        *,
        config: AtumConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        self._config = config
        self._resilience = config.woocommerce.resilience(name="atum")
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None
        self.page_size = page_size
        self.max_pages = max_pages

    async def __aenter__(self) -> AtumClient:
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

    async def fetch_items(self, *, cancel: CancellationToken | None = None) -> list[InventoryItem]:
        return await collect_pages(
            self.fetch_page,
            page_size=self.page_size,
            max_pages=self.max_pages,
            cancel=cancel,
            label="atum",
        )

    async def fetch_page(self, index: int) -> Page[InventoryItem]:
        params: dict[str, str | int] = {
            **self._config.woocommerce.auth_params,
            "location": self._config.location_id,
            "per_page": self.page_size,
            "page": index + 1,
        }
        response = await self._http().get(INVENTORIES_PATH, params=params)
        raise_for_status(response, source="atum")
        try:
            inventories = _INVENTORY_LIST.validate_json(response.content)
        except ValidationError as exc:
            raise DecodingError(f"atum: unexpected inventories payload: {exc}") from exc
        return Page(
            items=[translate_inventory(inventory) for inventory in inventories],
            raw_count=len(inventories),
            total=_total_header(response),
        )

    async def submit_batch(
        self,
        *,
        creates: Sequence[InventoryCreateCommand] = (),
        updates: Sequence[InventoryUpdateCommand] = (),
    ) -> BatchOutcome:
        if not creates and not updates:
            return BatchOutcome()

        request = AtumBatchRequest(
            create=[
                build_create_item(
                    command,
                    location_id=self._config.location_id,
                    location_name=self._config.location_name,
                )
                for command in creates
            ],
            update=[build_update_item(command) for command in updates],
        )
        log.debug(
            "atum: batch with %d creates and %d updates", len(request.create), len(request.update)
        )
        response = await self._http().post(
            BATCH_PATH,
            params=self._config.woocommerce.auth_params,
            json=request.model_dump(mode="json"),
        )
        raise_for_status(response, source="atum")
        try:
            payload = AtumBatchResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise DecodingError(f"atum: unexpected batch payload: {exc}") from exc

        return BatchOutcome(
            creates=tuple(translate_result(result) for result in payload.create),
            updates=tuple(translate_result(result) for result in payload.update),
        )

    def _http(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._resilience)
        return self._client


def _total_header(response: httpx.Response) -> int | None:
    value = response.headers.get("X-WP-Total")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
