"""Manual overrides and conflict inspection for entry attribute values."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalogix.domain.conflicts import describe_conflict
from catalogix.domain.errors import InputValidationError
from catalogix.domain.model import AttributeValue, utcnow
from catalogix.domain.normalize import coerce_value
from catalogix.domain.policy import CatalogPolicy
from catalogix.domain.recompute.scheduling import mark_pending

from ._scope import require

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from uuid import UUID

    from catalogix.domain.conflicts import ConflictDetail
    from catalogix.domain.ports.unit_of_work import CatalogUnitOfWork
    from catalogix.domain.recompute.intents import IntentSink

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConflictSummary:
    entry_id: UUID
    sku: str
    attribute_id: UUID
    attribute_key: str
    conflict_count: int
    active_value: str | None


@dataclass(frozen=True, slots=True)
class AttributeStats:
    total: int
    conflicting: int
    overridden: int


def set_manual_override(
    entry_id: UUID,
    attribute_id: UUID,
    raw_value: str,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    policy: CatalogPolicy | None = None,
) -> AttributeValue:
    """Create or replace the single override row of one entry attribute.

    The value must be readable as the attribute's declared type.
    """

    effective_policy = policy or CatalogPolicy()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        require(repositories.entries.get(entry_id), "catalog entry", entry_id)
        definition = require(repositories.definitions.get(attribute_id), "attribute", attribute_id)
        if not raw_value.strip():
            raise InputValidationError("an override value must not be blank")
        value = coerce_value(raw_value, definition)

        row = repositories.attribute_values.find_override(entry_id, attribute_id)
        if row is None:
            row = AttributeValue(
                catalog_entry_id=entry_id,
                attribute_id=attribute_id,
                raw_value=raw_value.strip(),
                value=value,
                is_manual_override=True,
                priority_score=effective_policy.resolution.manual_priority,
            )
            repositories.attribute_values.add(row)
        else:
            row.raw_value = raw_value.strip()
            row.value = value
            row.observed_at = utcnow()
        scheduled = mark_pending(repositories, [entry_id])
        uow.commit()

    intents.submit(scheduled, reason="override_set")
    log.info("Override %s on %s set to %r", definition.key, entry_id, row.raw_value)
    return row


def clear_manual_override(
    entry_id: UUID,
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> bool:
    """Delete the override row so supplier values compete again."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        row = repositories.attribute_values.find_override(entry_id, attribute_id)
        if row is None:
            return False
        repositories.attribute_values.delete(row)
        scheduled = mark_pending(repositories, [entry_id])
        uow.commit()

    intents.submit(scheduled, reason="override_cleared")
    return True


def set_active_value(
    entry_id: UUID,
    attribute_id: UUID,
    row_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    policy: CatalogPolicy | None = None,
) -> AttributeValue:
    """Pin one supplier row by copying its value into the override."""

    with unit_of_work_factory() as uow:
        rows = {row.id: row for row in uow.repositories.attribute_values.list_for_entry(entry_id)}
        chosen = require(rows.get(row_id), "attribute value", row_id)
        if chosen.attribute_id != attribute_id:
            raise InputValidationError(f"row {row_id} does not belong to attribute {attribute_id}")
        raw_value = chosen.raw_value

    return set_manual_override(
        entry_id,
        attribute_id,
        raw_value,
        unit_of_work_factory=unit_of_work_factory,
        intents=intents,
        policy=policy,
    )


def get_conflict_detail(
    entry_id: UUID,
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    policy: CatalogPolicy | None = None,
) -> ConflictDetail:
    """All stored rows for one entry attribute, the active row and why it won."""

    effective_policy = policy or CatalogPolicy()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        definition = require(repositories.definitions.get(attribute_id), "attribute", attribute_id)
        rows = [
            row
            for row in repositories.attribute_values.list_for_entry(entry_id)
            if row.attribute_id == attribute_id
        ]
        if not rows:
            raise InputValidationError(f"entry {entry_id} has no values for {definition.key}")
        rule = definition.preferred_source or effective_policy.resolution.preferred_source
        return describe_conflict(rows, rule)


def list_conflicts(
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    limit: int | None = None,
) -> list[ConflictSummary]:
    """Active rows that won a conflict, across all entries."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        definitions = {item.id: item for item in repositories.definitions.list()}
        summaries: list[ConflictSummary] = []
        skus: dict[UUID, str] = {}
        for row in repositories.attribute_values.list_conflicting(limit):
            if row.catalog_entry_id not in skus:
                entry = repositories.entries.get(row.catalog_entry_id)
                skus[row.catalog_entry_id] = entry.sku if entry is not None else "?"
            definition = definitions.get(row.attribute_id)
            summaries.append(
                ConflictSummary(
                    entry_id=row.catalog_entry_id,
                    sku=skus[row.catalog_entry_id],
                    attribute_id=row.attribute_id,
                    attribute_key=definition.key if definition is not None else str(row.attribute_id),
                    conflict_count=row.conflict_count,
                    active_value=row.value.render() if row.value is not None else None,
                )
            )
    return summaries


def attribute_stats(rows: Iterable[AttributeValue]) -> AttributeStats:
    """Count attributes of one entry: with an active value, in conflict, overridden."""

    active = [row for row in rows if row.is_active]
    return AttributeStats(
        total=len(active),
        conflicting=sum(1 for row in active if row.has_conflict),
        overridden=sum(1 for row in active if row.is_manual_override),
    )

