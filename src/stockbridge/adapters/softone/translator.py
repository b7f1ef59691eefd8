"""Translate SoftOne rows into :class:`ErpItem` projections."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from logging import getLogger
from typing import TYPE_CHECKING

from stockbridge.domain.model import ErpItem

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .schema import SoftOneListResponse

log = getLogger(__name__)

type ErpRow = dict[str, str | None]

INTERNAL_ID = "ITEM.MTRL"
CODE = "ITEM.CODE"
BARCODE = "ITEM.CODE1"
NAME = "ITEM.NAME"
CATEGORY = "ITEM.MTRCATEGORY"
UNIT = "ITEM.MTRUNIT1"
GROUP = "ITEM.MTRGROUP"
VAT = "ITEM.VAT"
RETAIL_PRICE = "ITEM.PRICER"
WHOLESALE_PRICE = "ITEM.PRICEW"
SALE_PRICE = "ITEM.MTRL_ITEMTRDATA_SALLPRICE"
PURCHASE_PRICE = "ITEM.MTRL_ITEMTRDATA_PURLPRICE"
DISCOUNT = "ITEM.SODISCOUNT"
QUANTITY = "ITEM.MTRL_ITEMTRDATA_QTY1"


def rows_as_mappings(response: SoftOneListResponse) -> list[ErpRow]:
    """Zip every row with the column names announced in ``fields``.

    Rows shorter than the field list get ``None`` for the missing columns;
    surplus values are dropped.
    """

    names = response.field_names
    mapped: list[ErpRow] = []
    for row in response.rows:
        mapped.append(
            {
                name: _text(row[index]) if index < len(row) else None
                for index, name in enumerate(names)
            }
        )
    return mapped


def translate_row(row: Mapping[str, str | None]) -> ErpItem:
    return ErpItem(
        internal_id=row.get(INTERNAL_ID),
        code=row.get(CODE),
        barcode=row.get(BARCODE),
        name=row.get(NAME),
        category=row.get(CATEGORY),
        unit=row.get(UNIT),
        item_group=row.get(GROUP),
        vat=row.get(VAT),
        retail_price=parse_decimal(row.get(RETAIL_PRICE)),
        wholesale_price=parse_decimal(row.get(WHOLESALE_PRICE)),
        sale_price=parse_decimal(row.get(SALE_PRICE)),
        purchase_price=parse_decimal(row.get(PURCHASE_PRICE)),
        discount=parse_decimal(row.get(DISCOUNT)),
        quantity=parse_decimal(row.get(QUANTITY)),
    )


def translate_response(response: SoftOneListResponse) -> list[ErpItem]:
    return [translate_row(row) for row in rows_as_mappings(response)]


def parse_decimal(value: str | None) -> Decimal | None:
    """Parse an invariant-culture number (``,`` thousands separator); junk becomes ``None``."""

    if value is None:
        return None
    cleaned = value.strip().replace(",", "")
    if not cleaned:
        return None
    try:
        parsed = Decimal(cleaned)
    except InvalidOperation:
        log.debug("Ignoring unparseable ERP number %r", value)
        return None
    if not parsed.is_finite():
        return None
    return parsed


def _text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
