"""Translate validated feed lines into intake commands."""

from __future__ import annotations

from datetime import UTC, datetime

from catalogix.domain.data_integration import PriceUpsert, SupplierEntityUpsert
from catalogix.domain.model import LocalizedText

from .schema import PriceLine, ProductLine


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_supplier_entity(line: ProductLine) -> SupplierEntityUpsert:
    return SupplierEntityUpsert(
        supplier_code=line.supplier,
        external_id=line.external_id,
        names=LocalizedText(uk=line.names.uk, ru=line.names.ru, en=line.names.en),
        supplier_category=line.supplier_category,
        category_id=line.category_id,
        brand=line.brand,
        barcode=line.barcode,
        vendor_code=line.vendor_code,
        media=tuple(line.images),
        stock=line.stock,
        attributes=dict(line.attributes),
        observed_at=_as_utc(line.observed_at),
    )


def to_price_upserts(line: ProductLine | PriceLine) -> list[PriceUpsert]:
    """Prices embedded in a product line, or the single price a price line carries."""

    if isinstance(line, PriceLine):
        return [
            PriceUpsert(
                supplier_code=line.supplier,
                external_id=line.external_id,
                price_type=line.price_type,
                amount=line.amount,
                currency=line.currency.upper(),
            )
        ]
    return [
        PriceUpsert(
            supplier_code=line.supplier,
            external_id=line.external_id,
            price_type=price.price_type,
            amount=price.amount,
            currency=price.currency.upper(),
        )
        for price in line.prices
    ]
