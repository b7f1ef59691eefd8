from __future__ import annotations

import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from stockbridge.adapters.softone import (
    SoftOneClient,
    SoftOneListResponse,
    decode_body,
    parse_decimal,
    rows_as_mappings,
    translate_response,
)
from stockbridge.config import SoftOneConfig
from stockbridge.domain.errors import (
    AuthenticationError,
    DecodingError,
    SourceRequestError,
    TransientSourceError,
)
from tests.helpers.http import make_client_factory

FIELDS = [
    {"name": "ITEM.MTRL", "type": "int"},
    {"name": "ITEM.CODE", "type": "string"},
    {"name": "ITEM.CODE1", "type": "string"},
    {"name": "ITEM.NAME", "type": "string"},
    {"name": "ITEM.PRICER", "type": "float"},
    {"name": "ITEM.MTRL_ITEMTRDATA_QTY1", "type": "float"},
]

CONFIG = SoftOneConfig(
    token="token-123",
    s1_code="S1CODE",
    base_url="https://erp.example/s1services",
    page_size=2,
)


def _listing(rows: list[list[object]], *, total: int | None = None) -> dict[str, object]:
    return {"success": True, "totalcount": total, "reqID": "req-1", "fields": FIELDS, "rows": rows}


def test_fetch_items_pages_with_start_and_limit() -> None:
    rows = [
        ["100", "A1", "5201", "Coffee", "12.50", "10"],
        ["101", "B2", "", "Tea", "3,100.00", "0"],
        ["102", "C3", None, "Sugar", "1.00", "-2"],
    ]
    bodies: list[dict[str, object]] = []
    headers: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        headers.append(request.headers.get("s1code"))
        start = int(body["start"])
        return httpx.Response(200, json=_listing(rows[start : start + 2], total=len(rows)))

    client = SoftOneClient(config=CONFIG, client_factory=make_client_factory(handler))
    items = asyncio.run(client.fetch_items())

    assert [body["start"] for body in bodies] == [0, 2]
    assert {body["limit"] for body in bodies} == {2}
    assert bodies[0]["appId"] == "703"
    assert bodies[0]["token"] == "token-123"
    assert headers == ["S1CODE", "S1CODE"]
    assert [item.code for item in items] == ["A1", "B2", "C3"]
    assert items[0].internal_id == "100"
    assert items[0].barcode == "5201"
    assert items[0].retail_price == Decimal("12.50")
    assert items[1].barcode is None
    assert items[1].retail_price == Decimal("3100.00")
    assert items[2].quantity == Decimal("-2")


def test_request_targets_list_item_endpoint() -> None:
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json=_listing([]))

    client = SoftOneClient(config=CONFIG, client_factory=make_client_factory(handler))
    assert asyncio.run(client.fetch_items()) == []

    assert seen[0].path == "/s1services/list/item"


def test_legacy_code_page_body_is_decoded() -> None:
    body = json.dumps(_listing([["100", "A1", None, "Καφές", "1", "1"]]), ensure_ascii=False)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, content=body.encode("cp1253"), headers={"content-type": "application/json"}
        )

    client = SoftOneClient(config=CONFIG, client_factory=make_client_factory(handler))
    (item,) = asyncio.run(client.fetch_items())

    assert item.name == "Καφές"


def test_rejected_token_is_an_authentication_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "Invalid token. Please login."})

    client = SoftOneClient(config=CONFIG, client_factory=make_client_factory(handler))

    with pytest.raises(AuthenticationError, match="Invalid token"):
        asyncio.run(client.fetch_page(0))


def test_other_application_errors_are_request_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": 13})

    client = SoftOneClient(config=CONFIG, client_factory=make_client_factory(handler))

    with pytest.raises(SourceRequestError, match="list/item rejected: 13"):
        asyncio.run(client.fetch_page(0))


def test_server_errors_are_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="Service Unavailable")

    client = SoftOneClient(config=CONFIG, client_factory=make_client_factory(handler))

    with pytest.raises(TransientSourceError):
        asyncio.run(client.fetch_items())


def test_undecodable_page_is_skipped_by_fetch_items() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if json.loads(request.content)["start"] == 0:
            return httpx.Response(200, json={"success": True, "rows": "not-a-list"})
        return httpx.Response(200, json=_listing([["101", "B2", None, "Tea", "1", "1"]]))

    client = SoftOneClient(config=CONFIG, client_factory=make_client_factory(handler))
    items = asyncio.run(client.fetch_items())

    assert [item.code for item in items] == ["B2"]


def test_short_rows_are_padded() -> None:
    response = SoftOneListResponse.model_validate(_listing([["100", " A1 "]]))

    (row,) = rows_as_mappings(response)
    (item,) = translate_response(response)

    assert row["ITEM.CODE"] == "A1"
    assert row["ITEM.NAME"] is None
    assert item.quantity is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1,234.50", Decimal("1234.50")),
        (" 7 ", Decimal(7)),
        ("", None),
        ("n/a", None),
        ("NaN", None),
        (None, None),
    ],
)
def test_parse_decimal(raw: str | None, expected: Decimal | None) -> None:
    assert parse_decimal(raw) == expected


def test_decode_body_gives_up_on_unknown_bytes() -> None:
    with pytest.raises(DecodingError):
        decode_body(b"\xff\xfe", declared=None, fallback="ascii")
