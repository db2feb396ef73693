"""Ports for persisting catalog aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from catalogix.domain.model import (
        AttributeAlias,
        AttributeDefinition,
        AttributeValue,
        CatalogEntry,
        CategoryAttributeBinding,
        CategoryNode,
        EntityLink,
        InboxItem,
        InboxStatus,
        PriceRecord,
        RecomputeStatus,
        SourceValue,
        Supplier,
        SupplierEntity,
    )


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class AttributeDefinitionRepository(Repository["AttributeDefinition"], Protocol):
    def get_by_key(self, key: str) -> AttributeDefinition | None: ...

    def list(self) -> Sequence[AttributeDefinition]: ...

    def delete(self, definition: AttributeDefinition) -> None: ...

    def is_referenced(self, attribute_id: UUID) -> bool: ...


@runtime_checkable
class AliasRepository(Repository["AttributeAlias"], Protocol):
    def find(self, label: str, supplier_id: UUID | None) -> AttributeAlias | None: ...

    def list(self) -> Sequence[AttributeAlias]: ...


@runtime_checkable
class CategoryRepository(Repository["CategoryNode"], Protocol):
    def list(self) -> Sequence[CategoryNode]: ...

    def add_binding(self, binding: CategoryAttributeBinding) -> None: ...

    def get_binding(
        self, category_id: UUID, attribute_id: UUID
    ) -> CategoryAttributeBinding | None: ...

    def delete_binding(self, binding: CategoryAttributeBinding) -> None: ...

    def list_bindings(self) -> Sequence[CategoryAttributeBinding]: ...


@runtime_checkable
class SupplierRepository(Repository["Supplier"], Protocol):
    def get_by_code(self, code: str) -> Supplier | None: ...

    def list(self) -> Sequence[Supplier]: ...


@runtime_checkable
class SupplierEntityRepository(Repository["SupplierEntity"], Protocol):
    def get_by_external_id(self, supplier_id: UUID, external_id: str) -> SupplierEntity | None: ...

    def list_by_ids(self, entity_ids: Collection[UUID]) -> Sequence[SupplierEntity]: ...


@runtime_checkable
class SourceValueRepository(Repository["SourceValue"], Protocol):
    def list_for_entities(self, entity_ids: Collection[UUID]) -> Sequence[SourceValue]: ...

    def list_unmapped(self, label: str, supplier_id: UUID | None) -> Sequence[SourceValue]: ...

    def delete(self, value: SourceValue) -> None: ...


@runtime_checkable
class PriceRepository(Repository["PriceRecord"], Protocol):
    def find(self, supplier_entity_id: UUID, price_type: str) -> PriceRecord | None: ...

    def list_for_entities(self, entity_ids: Collection[UUID]) -> Sequence[PriceRecord]: ...


@runtime_checkable
class CatalogEntryRepository(Repository["CatalogEntry"], Protocol):
    def get_by_sku(self, sku: str) -> CatalogEntry | None: ...

    def list_ids(self) -> Sequence[UUID]: ...

    def list_by_status(self, statuses: Collection[RecomputeStatus]) -> Sequence[CatalogEntry]: ...

    def list_in_categories(self, category_ids: Collection[UUID]) -> Sequence[CatalogEntry]: ...

    def find_match_candidates(
        self,
        *,
        barcode: str | None,
        vendor_code: str | None,
        brand: str | None,
    ) -> Sequence[CatalogEntry]: ...

    def mark_fresh(self, entry_id: UUID, *, generation: int) -> bool: ...

    def next_sku(self, prefix: str) -> str: ...


@runtime_checkable
class EntityLinkRepository(Repository["EntityLink"], Protocol):
    def get_for_supplier_entity(self, supplier_entity_id: UUID) -> EntityLink | None: ...

    def list_for_entry(self, entry_id: UUID) -> Sequence[EntityLink]: ...

    def list_for_supplier_entities(self, entity_ids: Collection[UUID]) -> Sequence[EntityLink]: ...

    def delete(self, link: EntityLink) -> None: ...


@runtime_checkable
class AttributeValueRepository(Repository["AttributeValue"], Protocol):
    def list_for_entry(self, entry_id: UUID) -> Sequence[AttributeValue]: ...

    def find_override(self, entry_id: UUID, attribute_id: UUID) -> AttributeValue | None: ...

    def list_conflicting(self, limit: int | None = None) -> Sequence[AttributeValue]: ...

    def list_entry_ids_for_attribute(self, attribute_id: UUID) -> Sequence[UUID]: ...

    def delete(self, value: AttributeValue) -> None: ...


@runtime_checkable
class InboxRepository(Repository["InboxItem"], Protocol):
    def find(self, supplier_id: UUID | None, normalized_label: str) -> InboxItem | None: ...

    def list(self, status: InboxStatus | None = None) -> Sequence[InboxItem]: ...
