"""Pydantic models for the ATUM multi-inventory REST extension."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AtumBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AtumMetaData(AtumBaseModel):
    sku: str | None = None
    barcode: str | None = None
    manage_stock: bool | None = None
    stock_quantity: Decimal | None = None
    stock_status: str | None = None

    @field_validator("stock_quantity", mode="before")
    @classmethod
    def _lenient_quantity(cls, value: object) -> Decimal | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            parsed = Decimal(str(value).strip())
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None

    @field_validator("sku", "barcode", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class AtumInventory(AtumBaseModel):
    id: int
    product_id: int | None = None
    name: str | None = None
    is_main: bool = False
    meta_data: AtumMetaData = Field(default_factory=AtumMetaData)

    @field_validator("meta_data", mode="before")
    @classmethod
    def _meta_or_empty(cls, value: object) -> object:
        # an inventory without meta data serialises it as [] in PHP
        return value if isinstance(value, dict) else {}


class AtumCreateMetaData(AtumBaseModel):
    sku: str | None = None
    manage_stock: bool = True
    stock_quantity: int = 0
    backorders: bool = False
    stock_status: str = "outofstock"
    barcode: str | None = None


class AtumInventoryCreate(AtumBaseModel):
    product_id: int
    name: str
    is_main: bool = False
    location: list[int] = Field(default_factory=list)
    meta_data: AtumCreateMetaData


class AtumUpdateMetaData(AtumBaseModel):
    stock_quantity: int


class AtumInventoryUpdate(AtumBaseModel):
    id: int
    meta_data: AtumUpdateMetaData


class AtumBatchRequest(AtumBaseModel):
    create: list[AtumInventoryCreate] = Field(default_factory=list["AtumInventoryCreate"])
    update: list[AtumInventoryUpdate] = Field(default_factory=list["AtumInventoryUpdate"])
    delete: list[int] = Field(default_factory=list)


class AtumError(AtumBaseModel):
    code: str | None = None
    message: str | None = None


class AtumBatchResult(AtumBaseModel):
    id: int | None = None
    error: AtumError | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _zero_is_missing(cls, value: object) -> object:
        return None if value in (0, "0", "") else value


class AtumBatchResponse(AtumBaseModel):
    create: list[AtumBatchResult] = Field(default_factory=list["AtumBatchResult"])
    update: list[AtumBatchResult] = Field(default_factory=list["AtumBatchResult"])
