"""Aggregator: stock, price bounds and display fields derived from linked records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalogix.domain.model import LocalizedText, PriceClass

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from decimal import Decimal
    from uuid import UUID

    from catalogix.domain.model import CatalogEntry, EntityLink, PriceRecord, SupplierEntity
    from catalogix.domain.policy import PricePolicy

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Aggregates:
    display_names: LocalizedText
    category_id: UUID | None
    brand: str | None
    barcode: str | None
    vendor_code: str | None
    media: tuple[str, ...]
    total_stock: int
    min_retail_price: Decimal | None
    max_retail_price: Decimal | None
    min_purchase_price: Decimal | None
    preferred_supplier_id: UUID | None


def order_links(links: Iterable[EntityLink]) -> list[EntityLink]:
    """Primary link first, then by creation time."""

    return sorted(
        links,
        key=lambda link: (not link.is_primary, link.created_at.timestamp(), str(link.id)),
    )


def price_bounds(
    prices: Iterable[PriceRecord],
    policy: PricePolicy,
) -> tuple[Decimal | None, Decimal | None, Decimal | None]:
    """Return (min retail, max retail, min purchase); missing bounds stay ``None``."""

    retail: list[Decimal] = []
    purchase: list[Decimal] = []
    for price in prices:
        if price.currency.upper() != policy.currency.upper():
            log.debug("Ignoring %s price in %s", price.price_type, price.currency)
            continue
        if price.amount <= 0:
            continue
        kind = policy.classify(price.price_type)
        if kind is PriceClass.RETAIL:
            retail.append(price.amount)
        elif kind is PriceClass.PURCHASE:
            purchase.append(price.amount)
    return (
        min(retail) if retail else None,
        max(retail) if retail else None,
        min(purchase) if purchase else None,
    )


def _first[T](values: Iterable[T | None]) -> T | None:
    for value in values:
        if value is not None and (not isinstance(value, str) or value.strip()):
            return value
    return None


def aggregate(
    entry: CatalogEntry,
    links: Sequence[EntityLink],
    entities: Mapping[UUID, SupplierEntity],
    prices: Iterable[PriceRecord],
    policy: PricePolicy,
) -> Aggregates:
    """Derive entry-level aggregates.

    Display fields prefer operator input on the entry, then the primary linked
    entity, then the remaining links in creation order.
    """

    linked = [entities[link.supplier_entity_id] for link in order_links(links)]
    linked_ids = {entity.id for entity in linked}
    min_retail, max_retail, min_purchase = price_bounds(
        (price for price in prices if price.supplier_entity_id in linked_ids),
        policy,
    )

    names = entry.names
    for entity in linked:
        names = names.fill_from(entity.names)

    return Aggregates(
        display_names=names,
        category_id=_first([entry.category_id, *(entity.category_id for entity in linked)]),
        brand=_first([entry.brand, *(entity.brand for entity in linked)]),
        barcode=_first([entry.barcode, *(entity.barcode for entity in linked)]),
        vendor_code=_first([entry.vendor_code, *(entity.vendor_code for entity in linked)]),
        media=next((entity.media for entity in linked if entity.media), ()),
        total_stock=sum(entity.stock for entity in linked),
        min_retail_price=min_retail,
        max_retail_price=max_retail,
        min_purchase_price=min_purchase,
        preferred_supplier_id=linked[0].supplier_id if linked else None,
    )
