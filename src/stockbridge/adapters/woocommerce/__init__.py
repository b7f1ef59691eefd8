"""WooCommerce storefront adapter package."""

from __future__ import annotations

from .client import WooCommerceClient
from .schema import WooCommerceProduct, WooCommerceProductDraft
from .translator import build_draft, translate_product

__all__ = [
    "WooCommerceClient",
    "WooCommerceProduct",
    "WooCommerceProductDraft",
    "build_draft",
    "translate_product",
]
