"""Stage-based recomputation of one catalog entry.

Stages run strictly in order (resolve -> aggregate -> evaluate) against a
``RecomputeContext`` loaded inside a single unit of work. Nothing is published
until every stage has finished: row inserts/deletes and the entry snapshot are
written in the same commit, so a failing stage leaves the previously published
state untouched. The entry is only marked fresh if no writer marked it pending
again while the stages ran; otherwise it stays pending for the next run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Protocol

from catalogix.domain.aggregation import Aggregates, aggregate
from catalogix.domain.conflicts import (
    AttributeResolution,
    RowSync,
    SourceObservation,
    apply_resolution,
    resolve_attribute,
    sync_rows,
)
from catalogix.domain.errors import ValueCoercionError
from catalogix.domain.model import EntrySnapshot, utcnow
from catalogix.domain.normalize import coerce_value
from catalogix.domain.policy import CatalogPolicy
from catalogix.domain.readiness import ReadinessInput, evaluate_readiness, quality_score
from catalogix.domain.schema import CategoryGraph, resolve_schema

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime
    from uuid import UUID

    from catalogix.domain.model import (
        AttributeDefinition,
        AttributeValue,
        CatalogEntry,
        EntityLink,
        PriceRecord,
        SourceValue,
        Supplier,
        SupplierEntity,
    )
    from catalogix.domain.ports.unit_of_work import CatalogRepositories, CatalogUnitOfWork

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RecomputeContext:
    entry: CatalogEntry
    links: list[EntityLink]
    entities: dict[UUID, SupplierEntity]
    suppliers: dict[UUID, Supplier]
    source_values: list[SourceValue]
    prices: list[PriceRecord]
    definitions: dict[UUID, AttributeDefinition]
    rows: list[AttributeValue]
    graph: CategoryGraph
    policy: CatalogPolicy = field(default_factory=CatalogPolicy)

    row_sync: RowSync | None = None
    resolutions: dict[UUID, AttributeResolution] = field(default_factory=dict)
    flags_changed: int = 0
    aggregates: Aggregates | None = None
    snapshot: EntrySnapshot | None = None

    def active_attribute_ids(self) -> set[UUID]:
        rows = self.row_sync.rows if self.row_sync is not None else self.rows
        return {row.attribute_id for row in rows if row.is_active}


class RecomputeStage(Protocol):
    """Contract implemented by each recompute stage."""

    name: str

    def run(self, context: RecomputeContext) -> None: ...


class ConflictResolutionStage:
    name = "resolve"

    def run(self, context: RecomputeContext) -> None:
        observations = list(self._observations(context))
        context.row_sync = sync_rows(context.entry.id, context.rows, observations)
        for attribute_id, rows in sorted(
            context.row_sync.by_attribute().items(), key=lambda item: str(item[0])
        ):
            definition = context.definitions.get(attribute_id)
            rule = (
                definition.preferred_source
                if definition is not None and definition.preferred_source is not None
                else context.policy.resolution.preferred_source
            )
            resolution = resolve_attribute(rows, rule)
            if apply_resolution(rows, resolution):
                context.flags_changed += 1
            context.resolutions[attribute_id] = resolution

    def _observations(self, context: RecomputeContext) -> list[SourceObservation]:
        observations: list[SourceObservation] = []
        for source in context.source_values:
            if source.attribute_id is None or source.supplier_entity_id not in context.entities:
                continue
            definition = context.definitions.get(source.attribute_id)
            if definition is None:
                continue
            try:
                value = coerce_value(source.raw_value, definition)
            except ValueCoercionError as exc:
                log.debug("Unreadable %s value %r: %s", definition.key, source.raw_value, exc)
                value = None
            supplier = context.suppliers.get(source.supplier_id)
            priority = (
                context.policy.resolution.priority_for(supplier)
                if supplier is not None
                else context.policy.resolution.default_priority
            )
            observations.append(
                SourceObservation(
                    attribute_id=source.attribute_id,
                    supplier_id=source.supplier_id,
                    supplier_entity_id=source.supplier_entity_id,
                    raw_value=source.raw_value,
                    value=value,
                    priority_score=priority,
                    observed_at=source.observed_at,
                    created_at=source.created_at,
                )
            )
        return observations


class AggregationStage:
    name = "aggregate"

    def run(self, context: RecomputeContext) -> None:
        context.aggregates = aggregate(
            context.entry,
            context.links,
            context.entities,
            context.prices,
            context.policy.pricing,
        )


class ReadinessStage:
    name = "evaluate"

    def run(self, context: RecomputeContext) -> None:
        aggregates = context.aggregates
        if aggregates is None:
            raise RuntimeError("readiness evaluation requires aggregation to run first")
        verdict = evaluate_readiness(
            ReadinessInput(
                category_id=aggregates.category_id,
                min_retail_price=aggregates.min_retail_price,
                min_purchase_price=aggregates.min_purchase_price,
                names=aggregates.display_names,
                brand=aggregates.brand,
                total_stock=aggregates.total_stock,
                media=aggregates.media,
                barcode=aggregates.barcode,
                vendor_code=aggregates.vendor_code,
            )
        )
        required_filled: list[bool] = []
        if aggregates.category_id is not None and aggregates.category_id in context.graph:
            active = context.active_attribute_ids()
            schema = resolve_schema(context.graph, aggregates.category_id, context.definitions)
            required_filled = [item.attribute_id in active for item in schema if item.required]
        context.snapshot = EntrySnapshot(
            display_names=aggregates.display_names,
            category_id=aggregates.category_id,
            brand=aggregates.brand,
            barcode=aggregates.barcode,
            vendor_code=aggregates.vendor_code,
            media=aggregates.media,
            total_stock=aggregates.total_stock,
            min_retail_price=aggregates.min_retail_price,
            max_retail_price=aggregates.max_retail_price,
            min_purchase_price=aggregates.min_purchase_price,
            preferred_supplier_id=aggregates.preferred_supplier_id,
            verdict=verdict,
            quality_score=quality_score(verdict, required_filled),
        )


DEFAULT_STAGES: tuple[RecomputeStage, ...] = (
    ConflictResolutionStage(),
    AggregationStage(),
    ReadinessStage(),
)

type RecomputeStatusLabel = Literal["published", "unchanged", "missing"]


@dataclass(frozen=True, slots=True)
class RecomputeResult:
    entry_id: UUID
    status: RecomputeStatusLabel
    rows_added: int = 0
    rows_removed: int = 0


def load_context(
    repositories: CatalogRepositories,
    entry_id: UUID,
    policy: CatalogPolicy,
) -> RecomputeContext | None:
    entry = repositories.entries.get(entry_id)
    if entry is None:
        return None
    links = list(repositories.links.list_for_entry(entry_id))
    entity_ids = [link.supplier_entity_id for link in links]
    entities = {entity.id: entity for entity in repositories.supplier_entities.list_by_ids(entity_ids)}
    return RecomputeContext(
        entry=entry,
        links=links,
        entities=entities,
        suppliers={supplier.id: supplier for supplier in repositories.suppliers.list()},
        source_values=list(repositories.source_values.list_for_entities(entity_ids)),
        prices=list(repositories.prices.list_for_entities(entity_ids)),
        definitions={item.id: item for item in repositories.definitions.list()},
        rows=list(repositories.attribute_values.list_for_entry(entry_id)),
        graph=CategoryGraph(repositories.categories.list(), repositories.categories.list_bindings()),
        policy=policy,
    )


class RecomputePipeline:
    """Run all stages for one entry and publish the result atomically."""

    def __init__(
        self,
        *,
        unit_of_work_factory: Callable[[], CatalogUnitOfWork],
        policy: CatalogPolicy | None = None,
        stages: Sequence[RecomputeStage] = DEFAULT_STAGES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.unit_of_work_factory = unit_of_work_factory
        self.policy = policy or CatalogPolicy()
        self.stages = tuple(stages)
        self.clock = clock

    def __call__(self, entry_id: UUID) -> RecomputeResult:
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            context = load_context(repositories, entry_id, self.policy)
            if context is None:
                log.warning("Catalog entry %s vanished before recompute", entry_id)
                return RecomputeResult(entry_id=entry_id, status="missing")
            generation = context.entry.generation

            for stage in self.stages:
                log.debug("Recompute %s: stage %s", entry_id, stage.name)
                stage.run(context)

            if context.snapshot is None or context.row_sync is None:
                raise RuntimeError("recompute stages did not produce a snapshot")

            for row in context.row_sync.added:
                repositories.attribute_values.add(row)
            for row in context.row_sync.removed:
                repositories.attribute_values.delete(row)
            changed = context.entry.publish(context.snapshot, computed_at=self.clock())
            if repositories.entries.mark_fresh(entry_id, generation=generation):
                context.entry.mark_fresh()
            else:
                log.info("Catalog entry %s changed during recompute; left pending", entry_id)
            uow.commit()

        sync = context.row_sync
        status: RecomputeStatusLabel = (
            "published"
            if changed or sync.added or sync.removed or sync.updated or context.flags_changed
            else "unchanged"
        )
        log.debug("Recompute %s finished: %s", entry_id, status)
        return RecomputeResult(
            entry_id=entry_id,
            status=status,
            rows_added=len(sync.added),
            rows_removed=len(sync.removed),
        )
