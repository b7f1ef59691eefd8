"""SoftOne Go ERP adapter package."""

from __future__ import annotations

from .client import SoftOneClient, decode_body
from .schema import SoftOneField, SoftOneListResponse
from .translator import parse_decimal, rows_as_mappings, translate_response, translate_row

__all__ = [
    "SoftOneClient",
    "SoftOneField",
    "SoftOneListResponse",
    "decode_body",
    "parse_decimal",
    "rows_as_mappings",
    "translate_response",
    "translate_row",
]
