"""Pydantic models for the SoftOne Go ``list/item`` web service."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SoftOneBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SoftOneField(SoftOneBaseModel):
    name: str
    type: str | None = None


class SoftOneListResponse(SoftOneBaseModel):
    """Columnar page: ``fields`` names the columns of every entry in ``rows``."""

    success: bool = False
    total_count: int | None = Field(default=None, alias="totalcount")
    fields: list[SoftOneField] = Field(default_factory=list["SoftOneField"])
    rows: list[list[object]] = Field(default_factory=list)
    error: str | None = None
    request_id: str | None = Field(default=None, alias="reqID")

    @field_validator("error", mode="before")
    @classmethod
    def _stringify_error(cls, value: object) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @property
    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]
