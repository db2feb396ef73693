"""Catalog entry maintenance and read models for presentation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from catalogix.domain.errors import InputValidationError
from catalogix.domain.model import CatalogEntry, LocalizedText
from catalogix.domain.policy import CatalogPolicy
from catalogix.domain.recompute.scheduling import mark_pending

from ._scope import require
from .attributes import AttributeStats, attribute_stats

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogix.domain.model import AttributeDefinition, AttributeValue, EntityLink
    from catalogix.domain.ports.unit_of_work import CatalogRepositories, CatalogUnitOfWork
    from catalogix.domain.recompute.intents import IntentSink

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedValue:
    attribute: AttributeDefinition
    row: AttributeValue


@dataclass(frozen=True, slots=True)
class EntryView:
    """Everything presentation needs about one entry, read in one transaction."""

    entry: CatalogEntry
    links: tuple[EntityLink, ...]
    values: tuple[ResolvedValue, ...]
    stats: AttributeStats


def create_entry(
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    names: LocalizedText | None = None,
    category_id: UUID | None = None,
    brand: str | None = None,
    barcode: str | None = None,
    vendor_code: str | None = None,
    sku: str | None = None,
    policy: CatalogPolicy | None = None,
) -> CatalogEntry:
    """Create an operator-curated entry; a SKU is generated when none is given."""

    effective_policy = policy or CatalogPolicy()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        if category_id is not None:
            require(repositories.categories.get(category_id), "category", category_id)
        if sku is not None and repositories.entries.get_by_sku(sku.strip()) is not None:
            raise InputValidationError(f"sku {sku!r} already exists")
        entry = CatalogEntry(
            sku=sku or repositories.entries.next_sku(effective_policy.matching.sku_prefix),
            names=names or LocalizedText(),
            category_id=category_id,
            brand=_clean(brand),
            barcode=_clean(barcode),
            vendor_code=_clean(vendor_code),
        )
        repositories.entries.add(entry)
        scheduled = mark_pending(repositories, [entry.id])
        uow.commit()
    intents.submit(scheduled, reason="entry_created")
    log.info("Created catalog entry %s", entry.sku)
    return entry


def update_entry(
    entry_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    names: LocalizedText | None = None,
    category_id: UUID | None = None,
    clear_category: bool = False,
    brand: str | None = None,
    barcode: str | None = None,
    vendor_code: str | None = None,
) -> CatalogEntry:
    """Edit operator fields; ``None`` leaves a field alone and ``""`` clears a text field."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        entry = require(repositories.entries.get(entry_id), "catalog entry", entry_id)
        if names is not None:
            entry.names = names
        if clear_category:
            entry.category_id = None
        elif category_id is not None:
            require(repositories.categories.get(category_id), "category", category_id)
            entry.category_id = category_id
        if brand is not None:
            entry.brand = _clean(brand)
        if barcode is not None:
            entry.barcode = _clean(barcode)
        if vendor_code is not None:
            entry.vendor_code = _clean(vendor_code)
        scheduled = mark_pending(repositories, [entry.id])
        uow.commit()
    intents.submit(scheduled, reason="entry_updated")
    return entry


def find_entry(repositories: CatalogRepositories, key: UUID | str) -> CatalogEntry:
    """Look an entry up by id or SKU."""

    if isinstance(key, UUID):
        return require(repositories.entries.get(key), "catalog entry", key)
    try:
        entry_id = UUID(key)
    except ValueError:
        return require(repositories.entries.get_by_sku(key.strip()), "catalog entry", key)
    return require(repositories.entries.get(entry_id), "catalog entry", key)


def get_entry(
    key: UUID | str,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
) -> EntryView:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        entry = find_entry(repositories, key)
        definitions = {item.id: item for item in repositories.definitions.list()}
        rows = list(repositories.attribute_values.list_for_entry(entry.id))
        values = sorted(
            (
                ResolvedValue(attribute=definitions[row.attribute_id], row=row)
                for row in rows
                if row.is_active and row.attribute_id in definitions
            ),
            key=lambda item: (item.attribute.display_name.casefold(), item.attribute.key),
        )
        links = sorted(
            repositories.links.list_for_entry(entry.id),
            key=lambda link: (not link.is_primary, link.created_at),
        )
        return EntryView(
            entry=entry,
            links=tuple(links),
            values=tuple(values),
            stats=attribute_stats(rows),
        )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None
