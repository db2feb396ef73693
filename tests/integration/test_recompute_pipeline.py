from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from catalogix.app import build_runtime, recompute_all, recover_stale
from catalogix.config import RecomputeConfig
from catalogix.domain.data_integration import (
    PriceUpsert,
    upsert_price_record,
    upsert_supplier_entity,
)
from catalogix.domain.model import LocalizedText, RecomputeStatus
from catalogix.domain.operations import bind_attribute, create_attribute, create_category
from catalogix.domain.policy import CatalogPolicy, ResolutionPolicy
from catalogix.domain.recompute import (
    AggregationStage,
    ConflictResolutionStage,
    ReadinessStage,
    RecomputePipeline,
    record_failure,
    requeue_stale,
)
from tests.helpers.catalog import product

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from catalogix.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from catalogix.domain.recompute import RecomputeContext
    from tests.helpers.catalog import RecordingSink

    UowFactory = Callable[[], SqlAlchemyUnitOfWork]

POLICY = CatalogPolicy(resolution=ResolutionPolicy(supplier_priorities={"master": 100}))


def _price(supplier: str, external_id: str, price_type: str, amount: str) -> PriceUpsert:
    return PriceUpsert(
        supplier_code=supplier,
        external_id=external_id,
        price_type=price_type,
        amount=Decimal(amount),
    )


def _seed(uow_factory: UowFactory, sink: RecordingSink) -> tuple[UUID, UUID]:
    """A master product in a category with one required attribute, plus a competing supplier."""

    category = create_category(unit_of_work_factory=uow_factory, names=LocalizedText(uk="Дрилі"))
    color = create_attribute(
        unit_of_work_factory=uow_factory,
        key="manual:color",
        code="color",
        names=LocalizedText(uk="Колір"),
    )
    bind_attribute(category.id, color.id, unit_of_work_factory=uow_factory, intents=sink, required=True)

    shared = {
        "barcode": "4820000000011",
        "brand": "Bosch",
        "vendor_code": "GSR-120",
    }
    master = upsert_supplier_entity(
        product(
            "M-1",
            supplier="master",
            attributes={"Колір": "Червоний"},
            category_id=category.id,
            stock=3,
            media=("https://cdn.example/m-1.jpg",),
            **shared,
        ),
        unit_of_work_factory=uow_factory,
        intents=sink,
        policy=POLICY,
    )
    assert master.catalog_entry_id is not None
    upsert_price_record(_price("master", "M-1", "retail", "120"), unit_of_work_factory=uow_factory, intents=sink)
    upsert_price_record(_price("master", "M-1", "purchase", "80"), unit_of_work_factory=uow_factory, intents=sink)
    RecomputePipeline(unit_of_work_factory=uow_factory, policy=POLICY)(master.catalog_entry_id)

    other = upsert_supplier_entity(
        product("A-1", attributes={"Колір": "Синій"}, stock=7, **shared),
        unit_of_work_factory=uow_factory,
        intents=sink,
        policy=POLICY,
    )
    assert other.catalog_entry_id == master.catalog_entry_id
    upsert_price_record(_price("acme", "A-1", "Роздрібна", "100"), unit_of_work_factory=uow_factory, intents=sink)
    return master.catalog_entry_id, color.id


def test_pipeline_publishes_resolution_aggregates_and_readiness(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, color_id = _seed(sqlite_unit_of_work, sink)
    pipeline = RecomputePipeline(unit_of_work_factory=sqlite_unit_of_work, policy=POLICY)

    result = pipeline(entry_id)

    assert result.status == "published"
    assert result.rows_added == 1
    with sqlite_unit_of_work() as uow:
        repositories = uow.repositories
        entry = repositories.entries.get(entry_id)
        rows = repositories.attribute_values.list_for_entry(entry_id)
    assert entry is not None
    assert entry.recompute_status is RecomputeStatus.FRESH
    assert entry.total_stock == 10
    assert (entry.min_retail_price, entry.max_retail_price) == (Decimal(100), Decimal(120))
    assert entry.min_purchase_price == Decimal(80)
    assert entry.resolved_brand == "Bosch"
    assert entry.display_names.uk == "Товар M-1"
    assert entry.is_ready
    assert entry.quality_score == 100

    (active,) = [row for row in rows if row.is_active]
    assert active.attribute_id == color_id
    assert active.raw_value == "Червоний"
    assert active.priority_score == 100
    assert active.conflict_count == 1

    assert pipeline(entry_id).status == "unchanged"


def test_missing_required_attribute_lowers_quality(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, _ = _seed(sqlite_unit_of_work, sink)
    with sqlite_unit_of_work() as uow:
        for value in uow.repositories.source_values.list_for_entities(
            [link.supplier_entity_id for link in uow.repositories.links.list_for_entry(entry_id)]
        ):
            value.attribute_id = None
        uow.commit()

    RecomputePipeline(unit_of_work_factory=sqlite_unit_of_work, policy=POLICY)(entry_id)

    with sqlite_unit_of_work() as uow:
        entry = uow.repositories.entries.get(entry_id)
        assert uow.repositories.attribute_values.list_for_entry(entry_id) == []
    assert entry is not None
    # 9 readiness checks plus one unfilled required attribute
    assert entry.quality_score == 90


class _ExplodingStage:
    name = "explode"

    def run(self, context: RecomputeContext) -> None:
        raise RuntimeError("boom")


def test_failing_stage_keeps_published_state(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, _ = _seed(sqlite_unit_of_work, sink)
    with sqlite_unit_of_work() as uow:
        before = uow.repositories.entries.get(entry_id)
        assert before is not None
        published_stock = before.total_stock

    pipeline = RecomputePipeline(
        unit_of_work_factory=sqlite_unit_of_work,
        policy=POLICY,
        stages=(ConflictResolutionStage(), AggregationStage(), _ExplodingStage()),
    )
    with pytest.raises(RuntimeError, match="boom"):
        pipeline(entry_id)
    record_failure(sqlite_unit_of_work, entry_id, "RuntimeError: boom")

    with sqlite_unit_of_work() as uow:
        entry = uow.repositories.entries.get(entry_id)
        rows = uow.repositories.attribute_values.list_for_entry(entry_id)
    assert entry is not None
    assert entry.recompute_status is RecomputeStatus.FAILED
    assert entry.recompute_error == "RuntimeError: boom"
    assert entry.total_stock == published_stock == 3
    assert len(rows) == 1

    sink.submitted.clear()
    assert requeue_stale(unit_of_work_factory=sqlite_unit_of_work, intents=sink) == 1
    assert sink.submitted == [(entry_id, "requeue_stale")]


def test_runtime_drains_queued_entries(sqlite_unit_of_work: UowFactory, sink: RecordingSink) -> None:
    entry_id, _ = _seed(sqlite_unit_of_work, sink)
    runtime = build_runtime(
        unit_of_work_factory=sqlite_unit_of_work,
        policy=POLICY,
        recompute=RecomputeConfig(max_workers=1),
    )

    report = recover_stale(runtime)

    assert report.completed == 1
    assert report.failed == []
    with sqlite_unit_of_work() as uow:
        entry = uow.repositories.entries.get(entry_id)
    assert entry is not None
    assert entry.recompute_status is RecomputeStatus.FRESH
    assert entry.total_stock == 10

    assert recompute_all(runtime).completed == 1


class _ConcurrentPriceWriter:
    """Commits a price change from a separate unit of work while the pipeline is mid-run."""

    name = "concurrent-write"

    def __init__(self, uow_factory: UowFactory, sink: RecordingSink) -> None:
        self.uow_factory = uow_factory
        self.sink = sink

    def run(self, context: RecomputeContext) -> None:
        upsert_price_record(
            _price("acme", "A-1", "Роздрібна", "150"),
            unit_of_work_factory=self.uow_factory,
            intents=self.sink,
        )


def test_write_during_recompute_leaves_entry_pending(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, _ = _seed(sqlite_unit_of_work, sink)
    racing = RecomputePipeline(
        unit_of_work_factory=sqlite_unit_of_work,
        policy=POLICY,
        stages=(
            ConflictResolutionStage(),
            _ConcurrentPriceWriter(sqlite_unit_of_work, sink),
            AggregationStage(),
            ReadinessStage(),
        ),
    )

    assert racing(entry_id).status == "published"

    with sqlite_unit_of_work() as uow:
        entry = uow.repositories.entries.get(entry_id)
    assert entry is not None
    # published from prices loaded before the concurrent write
    assert entry.max_retail_price == Decimal(120)
    assert entry.recompute_status is RecomputeStatus.PENDING

    sink.submitted.clear()
    assert requeue_stale(unit_of_work_factory=sqlite_unit_of_work, intents=sink) == 1
    assert sink.submitted == [(entry_id, "requeue_stale")]

    RecomputePipeline(unit_of_work_factory=sqlite_unit_of_work, policy=POLICY)(entry_id)

    with sqlite_unit_of_work() as uow:
        entry = uow.repositories.entries.get(entry_id)
    assert entry is not None
    assert (entry.min_retail_price, entry.max_retail_price) == (Decimal(120), Decimal(150))
    assert entry.recompute_status is RecomputeStatus.FRESH


def test_generation_guards_fresh_status(sqlite_unit_of_work: UowFactory, sink: RecordingSink) -> None:
    entry_id, _ = _seed(sqlite_unit_of_work, sink)
    with sqlite_unit_of_work() as uow:
        entry = uow.repositories.entries.get(entry_id)
        assert entry is not None
        generation = entry.generation
        uow.commit()

    upsert_price_record(_price("acme", "A-1", "Роздрібна", "90"), unit_of_work_factory=sqlite_unit_of_work, intents=sink)

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.entries.mark_fresh(entry_id, generation=generation) is False
        current = uow.repositories.entries.get(entry_id)
        assert current is not None
        assert current.generation == generation + 1
        assert uow.repositories.entries.mark_fresh(entry_id, generation=current.generation) is True
        uow.commit()
