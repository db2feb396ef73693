"""Category tree edits and attribute binding maintenance.

Every edit schedules recomputation of the entries in the edited subtree, since
their effective schema (and therefore their quality score) may have changed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from catalogix.domain.model import CategoryAttributeBinding, CategoryNode, LocalizedText
from catalogix.domain.recompute.scheduling import mark_pending
from catalogix.domain.schema import resolve_schema

from ._scope import category_graph, entries_in_subtree, require

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from catalogix.domain.ports.unit_of_work import CatalogRepositories, CatalogUnitOfWork
    from catalogix.domain.recompute.intents import IntentSink
    from catalogix.domain.schema import ResolvedAttribute

log = logging.getLogger(__name__)


def create_category(
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    names: LocalizedText,
    parent_id: UUID | None = None,
) -> CategoryNode:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        node = CategoryNode(parent_id=parent_id, names=names)
        category_graph(repositories).validate_parent(node.id, parent_id)
        repositories.categories.add(node)
        uow.commit()
    log.info("Created category %s", node.display_name)
    return node


def move_category(
    category_id: UUID,
    parent_id: UUID | None,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> CategoryNode:
    """Re-parent a category; moves that would close a loop raise ``CategoryCycleError``."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        graph = category_graph(repositories)
        node = graph.get(category_id)
        graph.validate_parent(category_id, parent_id)
        node.parent_id = parent_id
        scheduled = mark_pending(repositories, entries_in_subtree(repositories, category_id))
        uow.commit()
    intents.submit(scheduled, reason="category_moved")
    return node


def bind_attribute(
    category_id: UUID,
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    required: bool | None = None,
    visible: bool | None = None,
    position: int | None = None,
    unit_override: str | None = None,
    constraints: dict[str, Any] | None = None,
) -> CategoryAttributeBinding:
    """Create or fully replace the binding at ``category_id``."""

    def edit(binding: CategoryAttributeBinding) -> None:
        binding.replace(
            required=required,
            visible=visible,
            position=position,
            unit_override=unit_override,
            constraints=constraints,
        )

    return _edit_binding(
        category_id,
        attribute_id,
        edit,
        unit_of_work_factory=unit_of_work_factory,
        intents=intents,
        reason="binding_set",
    )


def override_attribute(
    category_id: UUID,
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    required: bool | None = None,
    visible: bool | None = None,
    position: int | None = None,
    unit_override: str | None = None,
    constraints: dict[str, Any] | None = None,
) -> CategoryAttributeBinding:
    """Override only the given fields of an inherited attribute at ``category_id``."""

    def edit(binding: CategoryAttributeBinding) -> None:
        binding.merge(
            required=required,
            visible=visible,
            position=position,
            unit_override=unit_override,
            constraints=constraints,
        )

    return _edit_binding(
        category_id,
        attribute_id,
        edit,
        unit_of_work_factory=unit_of_work_factory,
        intents=intents,
        reason="binding_overridden",
    )


def disable_attribute(
    category_id: UUID,
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> CategoryAttributeBinding:
    """Hide an attribute from ``category_id`` and its subtree, inherited or not."""

    return _edit_binding(
        category_id,
        attribute_id,
        CategoryAttributeBinding.disable,
        unit_of_work_factory=unit_of_work_factory,
        intents=intents,
        reason="binding_disabled",
    )


def reset_attribute(
    category_id: UUID,
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> bool:
    """Drop the local binding so the inherited one applies again."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        binding = repositories.categories.get_binding(category_id, attribute_id)
        if binding is None:
            return False
        repositories.categories.delete_binding(binding)
        scheduled = mark_pending(repositories, entries_in_subtree(repositories, category_id))
        uow.commit()
    intents.submit(scheduled, reason="binding_reset")
    return True


def get_schema(
    category_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
) -> list[ResolvedAttribute]:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        definitions = {item.id: item for item in repositories.definitions.list()}
        return resolve_schema(category_graph(repositories), category_id, definitions)


def _edit_binding(
    category_id: UUID,
    attribute_id: UUID,
    edit: Callable[[CategoryAttributeBinding], None],
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    reason: str,
) -> CategoryAttributeBinding:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        binding = _get_or_create_binding(repositories, category_id, attribute_id)
        edit(binding)
        scheduled = mark_pending(repositories, entries_in_subtree(repositories, category_id))
        uow.commit()
    intents.submit(scheduled, reason=reason)
    log.debug("Binding %s/%s now %s", category_id, attribute_id, binding.state)
    return binding


def _get_or_create_binding(
    repositories: CatalogRepositories,
    category_id: UUID,
    attribute_id: UUID,
) -> CategoryAttributeBinding:
    require(repositories.categories.get(category_id), "category", category_id)
    require(repositories.definitions.get(attribute_id), "attribute", attribute_id)
    binding = repositories.categories.get_binding(category_id, attribute_id)
    if binding is None:
        binding = CategoryAttributeBinding(category_id=category_id, attribute_id=attribute_id)
        repositories.categories.add_binding(binding)
    return binding
