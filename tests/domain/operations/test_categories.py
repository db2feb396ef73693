from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from catalogix.domain.errors import CategoryCycleError, NotFoundError
from catalogix.domain.model import BindingOrigin, LocalizedText
from catalogix.domain.operations import (
    bind_attribute,
    create_attribute,
    create_category,
    create_entry,
    disable_attribute,
    get_schema,
    move_category,
    override_attribute,
    reset_attribute,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from catalogix.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from tests.helpers.catalog import RecordingSink

    UowFactory = Callable[[], SqlAlchemyUnitOfWork]


def _tree(uow_factory: UowFactory) -> tuple[UUID, UUID, UUID]:
    tools = create_category(unit_of_work_factory=uow_factory, names=LocalizedText(uk="Інструменти"))
    drills = create_category(
        unit_of_work_factory=uow_factory,
        names=LocalizedText(uk="Дрилі"),
        parent_id=tools.id,
    )
    power = create_attribute(unit_of_work_factory=uow_factory, key="manual:power", code="power")
    return tools.id, drills.id, power.id


def test_child_inherits_and_overrides_binding(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    tools, drills, power = _tree(sqlite_unit_of_work)
    bind_attribute(
        tools,
        power,
        unit_of_work_factory=sqlite_unit_of_work,
        intents=sink,
        required=True,
        position=3,
        unit_override="Вт",
    )

    (inherited,) = get_schema(drills, unit_of_work_factory=sqlite_unit_of_work)
    assert inherited.origin is BindingOrigin.INHERITED
    assert inherited.required
    assert inherited.unit == "Вт"

    override_attribute(
        drills,
        power,
        unit_of_work_factory=sqlite_unit_of_work,
        intents=sink,
        required=False,
    )

    (overridden,) = get_schema(drills, unit_of_work_factory=sqlite_unit_of_work)
    assert overridden.origin is BindingOrigin.OVERRIDDEN
    assert not overridden.required
    assert overridden.position == 3
    assert overridden.unit == "Вт"

    assert reset_attribute(drills, power, unit_of_work_factory=sqlite_unit_of_work, intents=sink)
    assert not reset_attribute(drills, power, unit_of_work_factory=sqlite_unit_of_work, intents=sink)
    (restored,) = get_schema(drills, unit_of_work_factory=sqlite_unit_of_work)
    assert restored.required


def test_disabled_attribute_is_hidden_from_subtree(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    tools, drills, power = _tree(sqlite_unit_of_work)
    bind_attribute(tools, power, unit_of_work_factory=sqlite_unit_of_work, intents=sink)

    disable_attribute(drills, power, unit_of_work_factory=sqlite_unit_of_work, intents=sink)

    assert get_schema(drills, unit_of_work_factory=sqlite_unit_of_work) == []
    assert len(get_schema(tools, unit_of_work_factory=sqlite_unit_of_work)) == 1


def test_edits_schedule_entries_in_subtree(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    tools, drills, power = _tree(sqlite_unit_of_work)
    inside = create_entry(unit_of_work_factory=sqlite_unit_of_work, intents=sink, category_id=drills)
    create_entry(unit_of_work_factory=sqlite_unit_of_work, intents=sink)
    sink.submitted.clear()

    bind_attribute(tools, power, unit_of_work_factory=sqlite_unit_of_work, intents=sink)

    assert sink.submitted == [(inside.id, "binding_set")]


def test_moves_that_close_a_loop_are_rejected(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    tools, drills, _ = _tree(sqlite_unit_of_work)

    with pytest.raises(CategoryCycleError):
        move_category(tools, drills, unit_of_work_factory=sqlite_unit_of_work, intents=sink)

    moved = move_category(drills, None, unit_of_work_factory=sqlite_unit_of_work, intents=sink)
    assert moved.parent_id is None


def test_binding_requires_known_rows(
    sqlite_unit_of_work: UowFactory,
    sink: RecordingSink,
) -> None:
    tools, _, _ = _tree(sqlite_unit_of_work)

    with pytest.raises(NotFoundError, match="attribute not found"):
        bind_attribute(tools, uuid4(), unit_of_work_factory=sqlite_unit_of_work, intents=sink)
