"""Pydantic models describing supplier feed lines (JSON lines)."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Literal, cast
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _int_to_str(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class FeedBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class NamesPayload(FeedBaseModel):
    uk: str | None = None
    ru: str | None = None
    en: str | None = None

    _normalize_blank = field_validator("uk", "ru", "en", mode="before")(_blank_to_none)


class PricePayload(FeedBaseModel):
    price_type: str = Field(alias="type", min_length=1)
    amount: Decimal = Field(ge=0, allow_inf_nan=False)
    currency: str = Field(default="UAH", min_length=3, max_length=3)


class ProductLine(FeedBaseModel):
    kind: Literal["product"] = "product"
    supplier: str = Field(min_length=1)
    external_id: str = Field(min_length=1)
    names: NamesPayload = Field(default_factory=NamesPayload)
    supplier_category: str | None = Field(default=None, alias="category")
    category_id: UUID | None = None
    brand: str | None = None
    barcode: str | None = None
    vendor_code: str | None = None
    images: list[str] = Field(default_factory=list[str])
    stock: int = Field(default=0, ge=0)
    attributes: dict[str, str] = Field(default_factory=dict[str, str])
    observed_at: datetime | None = None
    prices: list[PricePayload] = Field(default_factory=list[PricePayload])

    _normalize_blank = field_validator(
        "supplier_category", "brand", "barcode", "vendor_code", mode="before"
    )(_blank_to_none)
    _normalize_codes = field_validator("external_id", "barcode", "vendor_code", mode="before")(
        _int_to_str
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_plain_name(cls, value: object) -> object:
        # a bare ``name`` string is the Ukrainian title
        if isinstance(value, Mapping):
            mapping_value = cast(Mapping[str, object], value)
            if "name" in mapping_value and "names" not in mapping_value:
                data: dict[str, object] = dict(mapping_value)
                data["names"] = {"uk": data.pop("name")}
                return data
            return mapping_value
        return value

    @field_validator("attributes", mode="before")
    @classmethod
    def _stringify_values(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        mapping_value = cast(Mapping[object, object], value)
        converted: dict[object, object] = {}
        for key, item in mapping_value.items():
            if item is None:
                continue
            if isinstance(item, bool):
                converted[key] = "true" if item else "false"
            elif isinstance(item, int | float):
                converted[key] = str(item)
            else:
                converted[key] = item
        return converted


class PriceLine(FeedBaseModel):
    kind: Literal["price"] = "price"
    supplier: str = Field(min_length=1)
    external_id: str = Field(min_length=1)
    price_type: str = Field(alias="type", min_length=1)
    amount: Decimal = Field(ge=0, allow_inf_nan=False)
    currency: str = Field(default="UAH", min_length=3, max_length=3)

    _normalize_codes = field_validator("external_id", mode="before")(_int_to_str)


FEED_LINE_MODELS: dict[str, type[ProductLine] | type[PriceLine]] = {
    "product": ProductLine,
    "price": PriceLine,
}
