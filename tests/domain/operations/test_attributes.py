from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from catalogix.domain.data_integration import upsert_supplier_entity
from catalogix.domain.errors import InputValidationError, ValueCoercionError
from catalogix.domain.model import LocalizedText, ValueType
from catalogix.domain.operations import (
    clear_manual_override,
    create_attribute,
    get_conflict_detail,
    get_entry,
    link_entities,
    list_conflicts,
    set_active_value,
    set_manual_override,
)
from catalogix.domain.policy import CatalogPolicy, MatchingPolicy, ResolutionPolicy
from catalogix.domain.recompute import RecomputePipeline
from tests.helpers.catalog import product

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from catalogix.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from tests.helpers.catalog import RecordingSink

    UowFactory = Callable[[], SqlAlchemyUnitOfWork]

POLICY = CatalogPolicy(resolution=ResolutionPolicy(supplier_priorities={"master": 100}))


def _conflicting_entry(uow_factory: UowFactory, sink: RecordingSink) -> tuple[UUID, UUID]:
    color = create_attribute(
        unit_of_work_factory=uow_factory,
        key="manual:color",
        code="color",
        names=LocalizedText(uk="Колір"),
    )
    master = upsert_supplier_entity(
        product("M-1", supplier="master", attributes={"Колір": "Червоний"}),
        unit_of_work_factory=uow_factory,
        intents=sink,
        policy=POLICY,
    )
    other = upsert_supplier_entity(
        product("A-1", attributes={"Колір": "Синій"}),
        unit_of_work_factory=uow_factory,
        intents=sink,
        policy=CatalogPolicy(matching=MatchingPolicy(create_missing_entries=False)),
    )
    assert master.catalog_entry_id is not None
    link_entities(
        master.catalog_entry_id,
        other.supplier_entity_id,
        unit_of_work_factory=uow_factory,
        intents=sink,
    )
    RecomputePipeline(unit_of_work_factory=uow_factory, policy=POLICY)(master.catalog_entry_id)
    return master.catalog_entry_id, color.id


def _recompute(uow_factory: UowFactory, entry_id: UUID) -> None:
    RecomputePipeline(unit_of_work_factory=uow_factory, policy=POLICY)(entry_id)


def test_conflicts_are_listed_with_their_winner(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, color_id = _conflicting_entry(sqlite_unit_of_work, sink)

    (summary,) = list_conflicts(unit_of_work_factory=sqlite_unit_of_work)

    assert summary.entry_id == entry_id
    assert summary.sku == "SKU00000001"
    assert summary.attribute_id == color_id
    assert summary.attribute_key == "manual:color"
    assert summary.conflict_count == 1
    assert summary.active_value == "червоний"


def test_conflict_detail_names_the_winner(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, color_id = _conflicting_entry(sqlite_unit_of_work, sink)

    detail = get_conflict_detail(
        entry_id,
        color_id,
        unit_of_work_factory=sqlite_unit_of_work,
        policy=POLICY,
    )

    assert detail.active is not None
    assert detail.active.raw_value == "Червоний"
    assert [row.priority_score for row in detail.rows] == [100, 50]
    with pytest.raises(InputValidationError, match="has no values"):
        get_conflict_detail(uuid4(), color_id, unit_of_work_factory=sqlite_unit_of_work)


def test_manual_override_wins_and_can_be_cleared(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, color_id = _conflicting_entry(sqlite_unit_of_work, sink)
    sink.submitted.clear()

    row = set_manual_override(
        entry_id,
        color_id,
        " Зелений ",
        unit_of_work_factory=sqlite_unit_of_work,
        intents=sink,
        policy=POLICY,
    )
    _recompute(sqlite_unit_of_work, entry_id)

    assert row.raw_value == "Зелений"
    assert row.priority_score == 90
    assert sink.submitted == [(entry_id, "override_set")]
    view = get_entry(entry_id, unit_of_work_factory=sqlite_unit_of_work)
    (value,) = view.values
    assert value.row.is_manual_override
    assert value.row.raw_value == "Зелений"
    assert view.stats.overridden == 1
    assert list_conflicts(unit_of_work_factory=sqlite_unit_of_work) == []

    assert clear_manual_override(
        entry_id, color_id, unit_of_work_factory=sqlite_unit_of_work, intents=sink
    )
    assert not clear_manual_override(
        entry_id, color_id, unit_of_work_factory=sqlite_unit_of_work, intents=sink
    )
    _recompute(sqlite_unit_of_work, entry_id)
    (value,) = get_entry(entry_id, unit_of_work_factory=sqlite_unit_of_work).values
    assert value.row.raw_value == "Червоний"


def test_override_must_match_declared_type(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, _ = _conflicting_entry(sqlite_unit_of_work, sink)
    weight = create_attribute(
        unit_of_work_factory=sqlite_unit_of_work,
        key="manual:weight",
        code="weight",
        value_type=ValueType.NUMBER,
        default_unit="кг",
    )

    with pytest.raises(ValueCoercionError):
        set_manual_override(
            entry_id, weight.id, "heavy", unit_of_work_factory=sqlite_unit_of_work, intents=sink
        )
    with pytest.raises(InputValidationError, match="must not be blank"):
        set_manual_override(
            entry_id, weight.id, "  ", unit_of_work_factory=sqlite_unit_of_work, intents=sink
        )


def test_set_active_value_pins_a_supplier_row(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    entry_id, color_id = _conflicting_entry(sqlite_unit_of_work, sink)
    detail = get_conflict_detail(entry_id, color_id, unit_of_work_factory=sqlite_unit_of_work)
    losing = next(row for row in detail.rows if not row.is_active)

    override = set_active_value(
        entry_id,
        color_id,
        losing.id,
        unit_of_work_factory=sqlite_unit_of_work,
        intents=sink,
        policy=POLICY,
    )
    _recompute(sqlite_unit_of_work, entry_id)

    assert override.raw_value == "Синій"
    (value,) = get_entry(entry_id, unit_of_work_factory=sqlite_unit_of_work).values
    assert value.row.is_manual_override
    assert value.row.raw_value == "Синій"
