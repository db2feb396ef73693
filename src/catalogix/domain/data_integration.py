"""Application services for ingesting supplier records.

Inbound records are already structured; this module validates them, stores them
in the Source Value Store, maps raw labels through the alias index, links the
supplier entity to a catalog entry and schedules recomputation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from catalogix.domain.aggregation import order_links
from catalogix.domain.errors import InputValidationError, NotFoundError
from catalogix.domain.linking import MatchCandidate, propose_link
from catalogix.domain.mapping import AliasIndex, map_raw_attribute, record_unmatched
from catalogix.domain.model import (
    CatalogEntry,
    EntityLink,
    LinkType,
    LocalizedText,
    PriceRecord,
    SourceValue,
    Supplier,
    SupplierEntity,
    utcnow,
)
from catalogix.domain.normalize import normalize_label, normalize_text
from catalogix.domain.policy import CatalogPolicy
from catalogix.domain.recompute.scheduling import mark_pending

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from datetime import datetime
    from uuid import UUID

    from catalogix.domain.linking import Fingerprint, LinkProposal
    from catalogix.domain.ports.unit_of_work import CatalogRepositories, CatalogUnitOfWork
    from catalogix.domain.recompute.intents import IntentSink

log = logging.getLogger(__name__)

INTAKE_ACTOR = "intake"


@dataclass(frozen=True, slots=True)
class SupplierEntityUpsert:
    """One structured supplier product record."""

    supplier_code: str
    external_id: str
    names: LocalizedText = field(default_factory=LocalizedText)
    supplier_category: str | None = None
    category_id: UUID | None = None
    brand: str | None = None
    barcode: str | None = None
    vendor_code: str | None = None
    media: tuple[str, ...] = ()
    stock: int = 0
    attributes: Mapping[str, str] = field(default_factory=dict[str, str])
    observed_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PriceUpsert:
    supplier_code: str
    external_id: str
    price_type: str
    amount: Decimal
    currency: str = "UAH"


@dataclass(slots=True)
class IntakeResult:
    supplier_entity_id: UUID
    catalog_entry_id: UUID | None = None
    created_entity: bool = False
    created_entry: bool = False
    mapped: int = 0
    unmatched: int = 0
    ignored: int = 0
    link: LinkProposal | None = None


def validate_supplier_entity(record: SupplierEntityUpsert) -> None:
    """Reject malformed records before anything is written."""

    problems: list[str] = []
    if not record.supplier_code.strip():
        problems.append("supplier_code is required")
    if not record.external_id.strip():
        problems.append("external_id is required")
    if record.stock < 0:
        problems.append(f"stock must be >= 0, got {record.stock}")
    seen: set[str] = set()
    for label, value in record.attributes.items():
        if label.strip() in seen:
            problems.append(f"attribute label {label!r} is repeated")
        seen.add(label.strip())
        if not normalize_label(label):
            problems.append(f"attribute label {label!r} is blank")
        if not isinstance(value, str):
            problems.append(f"attribute {label!r} must have a string value")
    if problems:
        raise InputValidationError("; ".join(problems))


def validate_price(record: PriceUpsert) -> None:
    problems: list[str] = []
    if not record.supplier_code.strip() or not record.external_id.strip():
        problems.append("supplier_code and external_id are required")
    if not record.price_type.strip():
        problems.append("price_type is required")
    if not record.amount.is_finite() or record.amount < 0:
        problems.append(f"price must be a non-negative number, got {record.amount}")
    if len(record.currency.strip()) != 3:  # noqa: PLR2004
        problems.append(f"currency must be a 3-letter code, got {record.currency!r}")
    if problems:
        raise InputValidationError("; ".join(problems))


def upsert_supplier_entity(
    record: SupplierEntityUpsert,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    policy: CatalogPolicy | None = None,
) -> IntakeResult:
    """Store one supplier record, map its attributes and link it to a catalog entry."""

    validate_supplier_entity(record)
    effective_policy = policy or CatalogPolicy()

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        if record.category_id is not None and repositories.categories.get(record.category_id) is None:
            raise InputValidationError(f"unknown category reference {record.category_id}")

        supplier = _get_or_create_supplier(repositories, record.supplier_code)
        entity, created = _get_or_create_entity(repositories, supplier, record)
        result = IntakeResult(supplier_entity_id=entity.id, created_entity=created)

        _store_attributes(repositories, supplier, entity, record, result)

        link = repositories.links.get_for_supplier_entity(entity.id)
        if link is None:
            link = _auto_link(repositories, entity, effective_policy, result)
        result.catalog_entry_id = link.catalog_entry_id if link is not None else None

        scheduled = mark_pending(repositories, [link.catalog_entry_id] if link is not None else [])
        uow.commit()

    intents.submit(scheduled, reason="supplier_entity_upsert")
    log.debug(
        "Upserted %s/%s: mapped=%s, unmatched=%s, entry=%s",
        record.supplier_code,
        record.external_id,
        result.mapped,
        result.unmatched,
        result.catalog_entry_id,
    )
    return result


def upsert_price_record(
    record: PriceUpsert,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> PriceRecord:
    """Insert or update the price of one supplier entity for one classification tag."""

    validate_price(record)
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        supplier = repositories.suppliers.get_by_code(record.supplier_code.strip())
        entity = (
            repositories.supplier_entities.get_by_external_id(supplier.id, record.external_id.strip())
            if supplier is not None
            else None
        )
        if entity is None:
            raise NotFoundError("supplier entity", f"{record.supplier_code}/{record.external_id}")

        price_type = record.price_type.strip()
        price = repositories.prices.find(entity.id, price_type)
        if price is None:
            price = PriceRecord(
                supplier_entity_id=entity.id,
                price_type=price_type,
                amount=record.amount,
                currency=record.currency.strip().upper(),
            )
            repositories.prices.add(price)
        else:
            price.amount = record.amount
            price.currency = record.currency.strip().upper()
            price.updated_at = utcnow()

        link = repositories.links.get_for_supplier_entity(entity.id)
        scheduled = mark_pending(repositories, [link.catalog_entry_id] if link is not None else [])
        uow.commit()

    intents.submit(scheduled, reason="price_upsert")
    return price


def ingest_batch(
    entities: Iterable[SupplierEntityUpsert],
    prices: Iterable[PriceUpsert] = (),
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    policy: CatalogPolicy | None = None,
) -> tuple[list[IntakeResult], list[tuple[str, str]]]:
    """Ingest records one by one; invalid records are reported, valid ones still land."""

    results: list[IntakeResult] = []
    rejected: list[tuple[str, str]] = []
    for record in entities:
        try:
            results.append(
                upsert_supplier_entity(
                    record,
                    unit_of_work_factory=unit_of_work_factory,
                    intents=intents,
                    policy=policy,
                )
            )
        except InputValidationError as exc:
            log.warning("Rejected %s/%s: %s", record.supplier_code, record.external_id, exc)
            rejected.append((f"{record.supplier_code}/{record.external_id}", str(exc)))
    for price in prices:
        try:
            upsert_price_record(price, unit_of_work_factory=unit_of_work_factory, intents=intents)
        except (InputValidationError, NotFoundError) as exc:
            log.warning("Rejected price %s/%s: %s", price.supplier_code, price.external_id, exc)
            rejected.append((f"{price.supplier_code}/{price.external_id}", str(exc)))
    return results, rejected


def _get_or_create_supplier(repositories: CatalogRepositories, code: str) -> Supplier:
    supplier = repositories.suppliers.get_by_code(code.strip())
    if supplier is None:
        supplier = Supplier(code=code, name=code.strip())
        repositories.suppliers.add(supplier)
        log.info("Registered supplier %s", supplier.code)
    return supplier


def _get_or_create_entity(
    repositories: CatalogRepositories,
    supplier: Supplier,
    record: SupplierEntityUpsert,
) -> tuple[SupplierEntity, bool]:
    external_id = record.external_id.strip()
    entity = repositories.supplier_entities.get_by_external_id(supplier.id, external_id)
    created = entity is None
    if entity is None:
        entity = SupplierEntity(supplier_id=supplier.id, external_id=external_id)
        repositories.supplier_entities.add(entity)
    entity.names = record.names
    entity.supplier_category = record.supplier_category
    entity.category_id = record.category_id
    entity.brand = record.brand.strip() if record.brand and record.brand.strip() else None
    entity.barcode = record.barcode.strip() if record.barcode and record.barcode.strip() else None
    entity.vendor_code = (
        record.vendor_code.strip() if record.vendor_code and record.vendor_code.strip() else None
    )
    entity.media = tuple(url for url in record.media if url.strip())
    entity.stock = record.stock
    entity.updated_at = utcnow()
    return entity, created


def _store_attributes(
    repositories: CatalogRepositories,
    supplier: Supplier,
    entity: SupplierEntity,
    record: SupplierEntityUpsert,
    result: IntakeResult,
) -> None:
    index = AliasIndex(repositories.definitions.list(), repositories.aliases.list())
    observed_at = record.observed_at or utcnow()
    existing = {
        value.label: value for value in repositories.source_values.list_for_entities([entity.id])
    }

    for raw_label, raw_value in record.attributes.items():
        label = raw_label.strip()
        outcome = map_raw_attribute(label, index, supplier_id=supplier.id)
        source = existing.pop(label, None)
        if source is None:
            source = SourceValue(
                supplier_entity_id=entity.id,
                supplier_id=supplier.id,
                label=label,
                normalized_label=outcome.label,
                raw_value=raw_value,
                observed_at=observed_at,
                created_at=observed_at,
            )
            repositories.source_values.add(source)
        elif source.raw_value != raw_value:
            source.raw_value = raw_value
            source.observed_at = observed_at

        if outcome.status == "mapped" and outcome.match is not None:
            if source.attribute_id != outcome.match.attribute_id:
                source.map_to(outcome.match.attribute_id, outcome.match.confidence)
            result.mapped += 1
            continue

        source.attribute_id = None
        source.confidence = None
        if outcome.status == "ignored":
            result.ignored += 1
            continue

        known_item = repositories.inbox.find(supplier.id, outcome.label)
        item = record_unmatched(
            known_item,
            raw_label=label,
            normalized_label=outcome.label,
            supplier_id=supplier.id,
            example=raw_value,
        )
        if known_item is None:
            repositories.inbox.add(item)
        result.unmatched += 1

    for stale in existing.values():
        repositories.source_values.delete(stale)


def _fingerprint(values: Iterable[tuple[UUID | None, str]]) -> Fingerprint:
    return frozenset(
        (attribute_id, normalize_text(raw)) for attribute_id, raw in values if attribute_id is not None
    )


def _distinct(values: Iterable[str | None]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(value for value in values if value))


def _match_candidate(repositories: CatalogRepositories, entry: CatalogEntry) -> MatchCandidate:
    links = order_links(repositories.links.list_for_entry(entry.id))
    by_id = {
        source.id: source
        for source in repositories.supplier_entities.list_by_ids(
            [link.supplier_entity_id for link in links]
        )
    }
    sources = [by_id[link.supplier_entity_id] for link in links if link.supplier_entity_id in by_id]
    names = _distinct(
        [entry.names.best(), entry.display_names.best(), *(source.names.best() for source in sources)]
    )

    return MatchCandidate(
        entry_id=entry.id,
        barcodes=_distinct(
            [entry.barcode, entry.resolved_barcode, *(source.barcode for source in sources)]
        ),
        vendor_codes=_distinct(
            [entry.vendor_code, entry.resolved_vendor_code, *(source.vendor_code for source in sources)]
        ),
        brands=_distinct([entry.brand, entry.resolved_brand, *(source.brand for source in sources)]),
        name=names[0] if names else None,
        attributes=_fingerprint(
            (row.attribute_id, row.raw_value)
            for row in repositories.attribute_values.list_for_entry(entry.id)
            if row.is_active
        ),
    )


def _auto_link(
    repositories: CatalogRepositories,
    entity: SupplierEntity,
    policy: CatalogPolicy,
    result: IntakeResult,
) -> EntityLink | None:
    candidates = [
        _match_candidate(repositories, entry)
        for entry in repositories.entries.find_match_candidates(
            barcode=entity.barcode,
            vendor_code=entity.vendor_code,
            brand=entity.brand,
        )
    ]
    entity_attributes = _fingerprint(
        (value.attribute_id, value.raw_value)
        for value in repositories.source_values.list_for_entities([entity.id])
    )
    proposal = propose_link(
        entity,
        candidates,
        entity_attributes=entity_attributes,
        similarity_threshold=policy.matching.similarity_threshold,
    )

    if proposal is not None:
        result.link = proposal
        existing_links = repositories.links.list_for_entry(proposal.catalog_entry_id)
        link = EntityLink(
            catalog_entry_id=proposal.catalog_entry_id,
            supplier_entity_id=entity.id,
            link_type=proposal.link_type,
            confidence=proposal.confidence,
            is_primary=not any(existing.is_primary for existing in existing_links),
            needs_review=proposal.needs_review,
            created_by=INTAKE_ACTOR,
        )
        repositories.links.add(link)
        log.info("Auto-linked %s to %s (%s)", entity.id, proposal.catalog_entry_id, proposal.reason)
        return link

    if not policy.matching.create_missing_entries:
        return None

    entry = CatalogEntry(sku=repositories.entries.next_sku(policy.matching.sku_prefix))
    repositories.entries.add(entry)
    link = EntityLink(
        catalog_entry_id=entry.id,
        supplier_entity_id=entity.id,
        link_type=LinkType.MANUAL,
        confidence=1.0,
        is_primary=True,
        created_by=INTAKE_ACTOR,
    )
    repositories.links.add(link)
    result.created_entry = True
    log.info("Created catalog entry %s for supplier entity %s", entry.sku, entity.id)
    return link
