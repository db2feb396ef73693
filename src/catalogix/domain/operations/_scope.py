"""Lookups shared by operator operations: required rows and affected entries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from catalogix.domain.errors import InputValidationError, NotFoundError
from catalogix.domain.model import AttributeAlias
from catalogix.domain.schema import CategoryGraph

if TYPE_CHECKING:
    from collections.abc import Collection
    from uuid import UUID

    from catalogix.domain.ports.unit_of_work import CatalogRepositories

ALIAS_CONFIDENCE = 1.0


def require[T](value: T | None, kind: str, key: object) -> T:
    if value is None:
        raise NotFoundError(kind, key)
    return value


def category_graph(repositories: CatalogRepositories) -> CategoryGraph:
    return CategoryGraph(repositories.categories.list(), repositories.categories.list_bindings())


def entries_for_supplier_entities(
    repositories: CatalogRepositories,
    entity_ids: Collection[UUID],
) -> list[UUID]:
    if not entity_ids:
        return []
    links = repositories.links.list_for_supplier_entities(entity_ids)
    return list(dict.fromkeys(link.catalog_entry_id for link in links))


def entries_in_subtree(repositories: CatalogRepositories, category_id: UUID) -> list[UUID]:
    subtree = category_graph(repositories).subtree(category_id)
    return [entry.id for entry in repositories.entries.list_in_categories(subtree)]


def write_alias(
    repositories: CatalogRepositories,
    *,
    label: str,
    attribute_id: UUID | None,
    supplier_id: UUID | None,
) -> tuple[AttributeAlias, list[UUID]]:
    """Upsert an alias for a normalized label and map the unmapped source values carrying it.

    Returns the alias and the catalog entries whose source values changed.
    """

    normalized = label.strip()
    if not normalized:
        raise InputValidationError("alias label must not be blank")

    alias = repositories.aliases.find(normalized, supplier_id)
    if alias is None:
        alias = AttributeAlias(
            label=normalized,
            attribute_id=attribute_id,
            supplier_id=supplier_id,
            confidence=ALIAS_CONFIDENCE,
        )
        repositories.aliases.add(alias)
    else:
        alias.attribute_id = attribute_id
        alias.confidence = ALIAS_CONFIDENCE

    if attribute_id is None:
        return alias, []

    touched: set[UUID] = set()
    for value in repositories.source_values.list_unmapped(normalized, supplier_id):
        value.map_to(attribute_id, ALIAS_CONFIDENCE)
        touched.add(value.supplier_entity_id)
    return alias, entries_for_supplier_entities(repositories, touched)
