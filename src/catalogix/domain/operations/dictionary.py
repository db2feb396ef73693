"""Attribute dictionary maintenance."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from catalogix.domain.errors import DefinitionInUseError, InputValidationError
from catalogix.domain.model import (
    AttributeDefinition,
    AttributeSource,
    LocalizedText,
    ValueType,
)
from catalogix.domain.normalize import normalize_label
from catalogix.domain.recompute.scheduling import mark_pending

from ._scope import require, write_alias

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from catalogix.domain.model import AttributeAlias, PreferredSourceRule
    from catalogix.domain.ports.unit_of_work import CatalogRepositories, CatalogUnitOfWork
    from catalogix.domain.recompute.intents import IntentSink

log = logging.getLogger(__name__)


def add_definition(
    repositories: CatalogRepositories,
    *,
    key: str,
    code: str,
    names: LocalizedText | None = None,
    value_type: ValueType = ValueType.TEXT,
    options: tuple[str, ...] = (),
    unit_kind: str | None = None,
    default_unit: str | None = None,
    source: AttributeSource = AttributeSource.MANUAL,
    needs_review: bool = False,
) -> AttributeDefinition:
    if repositories.definitions.get_by_key(key.strip()) is not None:
        raise InputValidationError(f"attribute key {key!r} already exists")
    definition = AttributeDefinition(
        key=key,
        code=code,
        names=names or LocalizedText(),
        value_type=value_type,
        options=options,
        unit_kind=unit_kind,
        default_unit=default_unit,
        source=source,
        needs_review=needs_review,
    )
    repositories.definitions.add(definition)
    return definition


def create_attribute(
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    key: str,
    code: str,
    names: LocalizedText | None = None,
    value_type: ValueType = ValueType.TEXT,
    options: tuple[str, ...] = (),
    unit_kind: str | None = None,
    default_unit: str | None = None,
) -> AttributeDefinition:
    """Add a manually curated definition to the dictionary."""

    with unit_of_work_factory() as uow:
        definition = add_definition(
            uow.repositories,
            key=key,
            code=code,
            names=names,
            value_type=value_type,
            options=options,
            unit_kind=unit_kind,
            default_unit=default_unit,
        )
        uow.commit()
    log.info("Created attribute %s", definition.key)
    return definition


def delete_attribute(
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
) -> None:
    """Remove a definition that nothing refers to any more."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        definition = require(repositories.definitions.get(attribute_id), "attribute", attribute_id)
        if repositories.definitions.is_referenced(attribute_id):
            raise DefinitionInUseError(f"attribute {definition.key} is still referenced")
        repositories.definitions.delete(definition)
        uow.commit()
    log.info("Deleted attribute %s", definition.key)


def mark_attribute_reviewed(
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
) -> AttributeDefinition:
    with unit_of_work_factory() as uow:
        definition = require(uow.repositories.definitions.get(attribute_id), "attribute", attribute_id)
        definition.mark_reviewed()
        uow.commit()
    return definition


def set_preferred_source(
    attribute_id: UUID,
    rule: PreferredSourceRule | None,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> AttributeDefinition:
    """Change how conflicts on one attribute are ranked; ``None`` restores the default."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        definition = require(repositories.definitions.get(attribute_id), "attribute", attribute_id)
        definition.preferred_source = rule
        scheduled = mark_pending(
            repositories,
            repositories.attribute_values.list_entry_ids_for_attribute(attribute_id),
        )
        uow.commit()
    intents.submit(scheduled, reason="preferred_source_changed")
    return definition


def add_alias(
    label: str,
    attribute_id: UUID | None,
    *,
    supplier_id: UUID | None = None,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> AttributeAlias:
    """Register an alias outside the inbox flow; a ``None`` target ignores the label."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        if attribute_id is not None:
            require(repositories.definitions.get(attribute_id), "attribute", attribute_id)
        alias, affected = write_alias(
            repositories,
            label=normalize_label(label),
            attribute_id=attribute_id,
            supplier_id=supplier_id,
        )
        scheduled = mark_pending(repositories, affected)
        uow.commit()
    intents.submit(scheduled, reason="alias_added")
    return alias
