"""Minimal Pydantic models for the WooCommerce REST products API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class WooCommerceBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WooCommerceProduct(WooCommerceBaseModel):
    id: int
    sku: str | None = None
    name: str | None = None
    status: str | None = None
    price: str | None = None
    regular_price: str | None = None

    @field_validator("sku", "name", "price", "regular_price", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class WooCommerceProductDraft(WooCommerceBaseModel):
    name: str
    sku: str
    regular_price: str | None = None
    status: str = "draft"
    type: str = "simple"
