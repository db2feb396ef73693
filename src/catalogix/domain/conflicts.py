"""Conflict resolver: one active value per (catalog entry, attribute).

Supplier rows are projections of Source Value Store rows through entity links and
are re-synchronised on every recomputation; the manual override row is operator
input and is never touched by the sync.

Ranking among distinct non-override values:

1. preferred-source rule (fixed supplier, most recent, oldest, or none)
2. priority score, highest first
3. insertion time, earliest first
4. row id, as a last deterministic tie-break
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from catalogix.domain.model import (
    AttributeValue,
    FixedSupplier,
    MostRecent,
    Oldest,
    format_rule,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime
    from uuid import UUID

    from catalogix.domain.model import PreferredSourceRule, TypedValue

type Rationale = Literal["manual_override", "single_value", "ranked", "no_values"]


@dataclass(frozen=True, slots=True)
class SourceObservation:
    """A mapped source value seen through an entity link."""

    attribute_id: UUID
    supplier_id: UUID
    supplier_entity_id: UUID
    raw_value: str
    value: TypedValue | None
    priority_score: int
    observed_at: datetime
    created_at: datetime


@dataclass(slots=True)
class RowSync:
    rows: list[AttributeValue] = field(default_factory=list)
    added: list[AttributeValue] = field(default_factory=list)
    removed: list[AttributeValue] = field(default_factory=list)
    updated: int = 0

    def by_attribute(self) -> dict[UUID, list[AttributeValue]]:
        grouped: dict[UUID, list[AttributeValue]] = {}
        for row in self.rows:
            grouped.setdefault(row.attribute_id, []).append(row)
        return grouped


@dataclass(frozen=True, slots=True)
class AttributeResolution:
    attribute_id: UUID
    active_id: UUID | None
    has_conflict: bool
    conflict_count: int
    distinct_values: int
    rationale: Rationale
    ranked: tuple[AttributeValue, ...]


@dataclass(frozen=True, slots=True)
class ConflictDetail:
    """Outbound view of one attribute's candidates for operators."""

    attribute_id: UUID
    rows: tuple[AttributeValue, ...]
    active: AttributeValue | None
    has_conflict: bool
    conflict_count: int
    rationale: str


def sync_rows(
    entry_id: UUID,
    existing: Iterable[AttributeValue],
    observations: Iterable[SourceObservation],
) -> RowSync:
    """Reconcile stored supplier rows with current observations.

    Rows are matched on (attribute, supplier entity). Unchanged rows are left
    untouched so a re-run on identical input performs no writes.
    """

    result = RowSync()
    wanted: dict[tuple[UUID, UUID], SourceObservation] = {}
    for observation in observations:
        key = (observation.attribute_id, observation.supplier_entity_id)
        current = wanted.get(key)
        if current is None or _observation_order(observation) < _observation_order(current):
            wanted[key] = observation

    for row in existing:
        if row.is_manual_override:
            result.rows.append(row)
            continue
        key = (row.attribute_id, row.supplier_entity_id) if row.supplier_entity_id else None
        observation = wanted.pop(key, None) if key is not None else None
        if observation is None:
            result.removed.append(row)
            continue
        if _refresh_row(row, observation):
            result.updated += 1
        result.rows.append(row)

    for key in sorted(wanted, key=lambda item: (str(item[0]), str(item[1]))):
        observation = wanted[key]
        row = AttributeValue(
            catalog_entry_id=entry_id,
            attribute_id=observation.attribute_id,
            supplier_id=observation.supplier_id,
            supplier_entity_id=observation.supplier_entity_id,
            raw_value=observation.raw_value,
            value=observation.value,
            priority_score=observation.priority_score,
            observed_at=observation.observed_at,
            created_at=observation.created_at,
        )
        result.added.append(row)
        result.rows.append(row)
    return result


def _observation_order(observation: SourceObservation) -> tuple[float, float, str]:
    # latest observation of the same attribute on one entity wins
    return (
        -observation.observed_at.timestamp(),
        observation.created_at.timestamp(),
        observation.raw_value,
    )


def _refresh_row(row: AttributeValue, observation: SourceObservation) -> bool:
    changed = False
    for name, value in (
        ("supplier_id", observation.supplier_id),
        ("raw_value", observation.raw_value),
        ("value", observation.value),
        ("priority_score", observation.priority_score),
        ("observed_at", observation.observed_at),
    ):
        if getattr(row, name) != value:
            setattr(row, name, value)
            changed = True
    return changed


def rank_rows(
    rows: Iterable[AttributeValue],
    rule: PreferredSourceRule,
) -> list[AttributeValue]:
    """Order non-override rows by rule, priority score, then insertion time."""

    def key(row: AttributeValue) -> tuple[float, int, float, str]:
        if isinstance(rule, FixedSupplier):
            first = 0.0 if row.supplier_id == rule.supplier_id else 1.0
        elif isinstance(rule, MostRecent):
            first = -row.observed_at.timestamp()
        elif isinstance(rule, Oldest):
            first = row.observed_at.timestamp()
        else:
            first = 0.0
        return (first, -row.priority_score, row.created_at.timestamp(), str(row.id))

    return sorted(rows, key=key)


def resolve_attribute(
    rows: Sequence[AttributeValue],
    rule: PreferredSourceRule,
) -> AttributeResolution:
    """Decide the active row for one (entry, attribute) pair without mutating rows."""

    if not rows:
        raise ValueError("resolve_attribute needs at least one row")
    attribute_id = rows[0].attribute_id
    candidates = [row for row in rows if not row.is_empty]

    overrides = [row for row in candidates if row.is_manual_override]
    if overrides:
        override = min(overrides, key=lambda row: (row.created_at.timestamp(), str(row.id)))
        others = rank_rows((row for row in candidates if row is not override), rule)
        return AttributeResolution(
            attribute_id=attribute_id,
            active_id=override.id,
            has_conflict=False,
            conflict_count=0,
            distinct_values=len({row.value for row in candidates}),
            rationale="manual_override",
            ranked=(override, *others),
        )

    ranked = tuple(rank_rows(candidates, rule))
    distinct = len({row.value for row in ranked})
    if not ranked:
        return AttributeResolution(
            attribute_id=attribute_id,
            active_id=None,
            has_conflict=False,
            conflict_count=0,
            distinct_values=0,
            rationale="no_values",
            ranked=(),
        )
    return AttributeResolution(
        attribute_id=attribute_id,
        active_id=ranked[0].id,
        has_conflict=distinct > 1,
        conflict_count=distinct - 1,
        distinct_values=distinct,
        rationale="single_value" if distinct == 1 else "ranked",
        ranked=ranked,
    )


def apply_resolution(rows: Iterable[AttributeValue], resolution: AttributeResolution) -> bool:
    """Write flags from ``resolution`` onto ``rows``; return whether anything changed."""

    changed = False
    for row in rows:
        is_active = row.id == resolution.active_id
        targets = (
            ("is_active", is_active),
            ("has_conflict", resolution.has_conflict),
            ("conflict_count", resolution.conflict_count),
        )
        for name, value in targets:
            if getattr(row, name) != value:
                setattr(row, name, value)
                changed = True
    return changed


def describe_conflict(
    rows: Sequence[AttributeValue],
    rule: PreferredSourceRule,
) -> ConflictDetail:
    """Build the operator-facing detail for one attribute from its stored rows."""

    resolution = resolve_attribute(rows, rule)
    empty = [row for row in rows if row.is_empty]
    ordered = (*resolution.ranked, *sorted(empty, key=lambda row: str(row.id)))
    active = next((row for row in ordered if row.id == resolution.active_id), None)
    if resolution.rationale == "ranked":
        rationale = (
            f"{resolution.distinct_values} distinct values; ranked by {format_rule(rule)}, "
            "priority score, insertion time"
        )
    else:
        rationale = resolution.rationale
    return ConflictDetail(
        attribute_id=resolution.attribute_id,
        rows=ordered,
        active=active,
        has_conflict=resolution.has_conflict,
        conflict_count=resolution.conflict_count,
        rationale=rationale,
    )
