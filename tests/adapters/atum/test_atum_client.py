from __future__ import annotations

import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from stockbridge.adapters.atum import AtumBatchResult, AtumClient, translate_result
from stockbridge.config import AtumConfig, WooCommerceConfig
from stockbridge.domain.errors import TransientSourceError
from stockbridge.domain.ports import InventoryCreateCommand, InventoryUpdateCommand
from tests.helpers.http import make_client_factory

CONFIG = AtumConfig(
    woocommerce=WooCommerceConfig(
        url="https://shop.example", consumer_key="ck", consumer_secret="cs"
    )
)


def _inventory(record_id: int, sku: str, quantity: object = 3) -> dict[str, object]:
    return {
        "id": record_id,
        "product_id": 50 + record_id,
        "name": "store1_location",
        "is_main": False,
        "meta_data": {"sku": sku, "barcode": "", "stock_quantity": quantity},
    }


def test_fetch_items_walks_pages_for_the_location() -> None:
    pages = {
        "1": [_inventory(1, "A1"), _inventory(2, "B2", "4.0")],
        "2": [_inventory(3, " C3 ", None)],
    }
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        page = request.url.params["page"]
        return httpx.Response(200, json=pages[page], headers={"X-WP-Total": "3"})

    client = AtumClient(config=CONFIG, client_factory=make_client_factory(handler), page_size=2)
    items = asyncio.run(client.fetch_items())

    assert [url.params["page"] for url in seen] == ["1", "2"]
    assert seen[0].params["location"] == "870"
    assert seen[0].params["per_page"] == "2"
    assert seen[0].path == "/wp-json/wc/v3/atum/inventories"
    assert [item.sku for item in items] == ["A1", "B2", "C3"]
    assert items[0].product_id == 51
    assert items[0].barcode is None
    assert items[1].stock_quantity == Decimal("4.0")
    assert items[2].stock_quantity is None


def test_inventory_without_meta_data_decodes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"id": 9, "product_id": 5, "meta_data": []}])

    client = AtumClient(config=CONFIG, client_factory=make_client_factory(handler))
    (item,) = asyncio.run(client.fetch_items())

    assert item.id == 9
    assert item.sku is None


def test_submit_batch_maps_results_by_position() -> None:
    payloads: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/wp-json/wc/v3/atum/inventories/batch"
        payloads.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "create": [
                    {"id": 901},
                    {"id": 0, "error": {"code": "atum_duplicate", "message": "Already exists"}},
                ],
                "update": [{"id": 7}],
            },
        )

    client = AtumClient(config=CONFIG, client_factory=make_client_factory(handler))
    outcome = asyncio.run(
        client.submit_batch(
            creates=[
                InventoryCreateCommand(
                    product_id=1, storefront_id=55, sku="A1", barcode="520", quantity=10
                ),
                InventoryCreateCommand(
                    product_id=2, storefront_id=56, sku="B2", barcode=None, quantity=0
                ),
            ],
            updates=[InventoryUpdateCommand(product_id=3, inventory_record_id=7, quantity=4)],
        )
    )

    (payload,) = payloads
    assert payload["create"][0] == {  # type: ignore[index]
        "product_id": 55,
        "name": "store1_location",
        "is_main": False,
        "location": [870],
        "meta_data": {
            "sku": "A1",
            "manage_stock": True,
            "stock_quantity": 10,
            "backorders": False,
            "stock_status": "instock",
            "barcode": "520",
        },
    }
    assert payload["create"][1]["meta_data"]["stock_status"] == "outofstock"  # type: ignore[index]
    assert payload["update"] == [{"id": 7, "meta_data": {"stock_quantity": 4}}]
    assert payload["delete"] == []

    assert outcome.creates[0].record_id == 901
    assert outcome.creates[1].ok is False
    assert outcome.creates[1].error_code == "atum_duplicate"
    assert outcome.creates[1].error_message == "Already exists"
    assert outcome.updates[0].record_id == 7


def test_empty_batch_sends_nothing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        pytest.fail("no request expected")

    client = AtumClient(config=CONFIG, client_factory=make_client_factory(handler))
    outcome = asyncio.run(client.submit_batch())

    assert outcome.creates == ()
    assert outcome.updates == ()


def test_batch_server_error_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    client = AtumClient(config=CONFIG, client_factory=make_client_factory(handler))

    with pytest.raises(TransientSourceError):
        asyncio.run(
            client.submit_batch(
                updates=[InventoryUpdateCommand(product_id=1, inventory_record_id=7, quantity=1)]
            )
        )


def test_result_without_id_or_error_is_a_failure() -> None:
    outcome = translate_result(AtumBatchResult.model_validate({"id": ""}))

    assert outcome.ok is False
    assert outcome.error_code == "missing_id"
