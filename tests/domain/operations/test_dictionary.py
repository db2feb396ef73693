from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from catalogix.domain.data_integration import upsert_supplier_entity
from catalogix.domain.errors import DefinitionInUseError, InputValidationError
from catalogix.domain.model import FixedSupplier, LocalizedText, MostRecent
from catalogix.domain.operations import (
    add_alias,
    bind_attribute,
    create_attribute,
    create_category,
    delete_attribute,
    mark_attribute_reviewed,
    set_preferred_source,
)
from tests.helpers.catalog import product

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogix.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from tests.helpers.catalog import RecordingSink

    UowFactory = Callable[[], SqlAlchemyUnitOfWork]


def test_keys_are_unique(sqlite_unit_of_work: UowFactory) -> None:
    create_attribute(unit_of_work_factory=sqlite_unit_of_work, key="manual:color", code="color")

    with pytest.raises(InputValidationError, match="already exists"):
        create_attribute(unit_of_work_factory=sqlite_unit_of_work, key=" manual:color ", code="c")


def test_alias_maps_existing_values_and_schedules_entries(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    result = upsert_supplier_entity(
        product("A-1", attributes={"Потужність, Вт": "750"}),
        unit_of_work_factory=sqlite_unit_of_work,
        intents=sink,
    )
    power = create_attribute(unit_of_work_factory=sqlite_unit_of_work, key="manual:power", code="power")
    sink.submitted.clear()

    alias = add_alias(
        "Потужність (Вт)",
        power.id,
        unit_of_work_factory=sqlite_unit_of_work,
        intents=sink,
    )

    assert alias.label == "потужність"
    assert alias.supplier_id is None
    assert sink.submitted == [(result.catalog_entry_id, "alias_added")]
    with sqlite_unit_of_work() as uow:
        (value,) = uow.repositories.source_values.list_for_entities([result.supplier_entity_id])
    assert value.attribute_id == power.id
    assert value.confidence == 1.0


def test_referenced_definitions_cannot_be_deleted(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    power = create_attribute(unit_of_work_factory=sqlite_unit_of_work, key="manual:power", code="power")
    spare = create_attribute(unit_of_work_factory=sqlite_unit_of_work, key="manual:spare", code="spare")
    tools = create_category(unit_of_work_factory=sqlite_unit_of_work, names=LocalizedText(uk="Інструменти"))
    bind_attribute(tools.id, power.id, unit_of_work_factory=sqlite_unit_of_work, intents=sink)

    with pytest.raises(DefinitionInUseError):
        delete_attribute(power.id, unit_of_work_factory=sqlite_unit_of_work)
    delete_attribute(spare.id, unit_of_work_factory=sqlite_unit_of_work)

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.definitions.get(spare.id) is None


def test_preferred_source_round_trips_through_storage(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    color = create_attribute(unit_of_work_factory=sqlite_unit_of_work, key="manual:color", code="color")
    upsert_supplier_entity(
        product("A-1", attributes={"color": "червоний"}),
        unit_of_work_factory=sqlite_unit_of_work,
        intents=sink,
    )
    sink.submitted.clear()

    set_preferred_source(color.id, MostRecent(), unit_of_work_factory=sqlite_unit_of_work, intents=sink)

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.definitions.get(color.id)
    assert stored is not None
    assert stored.preferred_source == MostRecent()
    # no attribute rows exist until the entry is recomputed
    assert sink.submitted == []

    with sqlite_unit_of_work() as uow:
        supplier = uow.repositories.suppliers.get_by_code("acme")
    assert supplier is not None
    set_preferred_source(
        color.id,
        FixedSupplier(supplier_id=supplier.id),
        unit_of_work_factory=sqlite_unit_of_work,
        intents=sink,
    )
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.definitions.get(color.id)
    assert stored is not None
    assert stored.preferred_source == FixedSupplier(supplier_id=supplier.id)


def test_review_flag_can_be_cleared(sqlite_unit_of_work: UowFactory) -> None:
    color = create_attribute(unit_of_work_factory=sqlite_unit_of_work, key="manual:color", code="color")

    reviewed = mark_attribute_reviewed(color.id, unit_of_work_factory=sqlite_unit_of_work)

    assert not reviewed.needs_review
