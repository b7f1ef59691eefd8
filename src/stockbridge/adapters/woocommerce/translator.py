"""Translate WooCommerce payloads into storefront projections."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from stockbridge.domain.model import StorefrontProduct, quantize_amount

from .schema import WooCommerceProductDraft

if TYPE_CHECKING:
    from .schema import WooCommerceProduct


def translate_product(product: WooCommerceProduct) -> StorefrontProduct:
    return StorefrontProduct(
        id=product.id,
        sku=product.sku.strip() if product.sku else None,
        name=product.name,
        price=_parse_price(product.regular_price or product.price),
        status=product.status,
    )


def build_draft(*, sku: str, name: str | None, price: Decimal | None) -> WooCommerceProductDraft:
    amount = quantize_amount(price)
    return WooCommerceProductDraft(
        name=name or sku,
        sku=sku,
        regular_price=format(amount.normalize(), "f") if amount is not None else None,
    )


def _parse_price(value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return quantize_amount(Decimal(value.strip()))
    except InvalidOperation:
        return None
