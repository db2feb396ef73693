"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import exists, or_, select, update

from catalogix.adapters.sqlalchemy.mappings import (
    attribute_alias_table,
    attribute_definition_table,
    attribute_value_table,
    catalog_entry_table,
    category_attribute_binding_table,
    category_table,
    entity_link_table,
    inbox_item_table,
    price_record_table,
    source_value_table,
    supplier_entity_table,
    supplier_table,
)
from catalogix.domain.model import (
    AttributeAlias,
    AttributeDefinition,
    AttributeValue,
    CatalogEntry,
    CategoryAttributeBinding,
    CategoryNode,
    EntityLink,
    InboxItem,
    PriceRecord,
    RecomputeStatus,
    SourceValue,
    Supplier,
    SupplierEntity,
)
from catalogix.domain.normalize import normalize_text

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from catalogix.domain.model import InboxStatus

SKU_DIGITS = 8


class SqlAlchemyRepository[TEntity]:
    """Shared ``add``/``get`` over one mapped class."""

    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, entity_id: UUID) -> TEntity | None:
        return self.session.get(self._entity_cls, entity_id)


class SqlAlchemyAttributeDefinitionRepository(SqlAlchemyRepository[AttributeDefinition]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, AttributeDefinition)

    def get_by_key(self, key: str) -> AttributeDefinition | None:
        stmt = select(AttributeDefinition).where(attribute_definition_table.c.key == key)
        return self.session.execute(stmt).scalar_one_or_none()

    def list(self) -> Sequence[AttributeDefinition]:
        stmt = select(AttributeDefinition).order_by(attribute_definition_table.c.key)
        return self.session.execute(stmt).scalars().all()

    def delete(self, definition: AttributeDefinition) -> None:
        self.session.delete(definition)

    def is_referenced(self, attribute_id: UUID) -> bool:
        references = (
            attribute_alias_table.c.attribute_id,
            category_attribute_binding_table.c.attribute_id,
            source_value_table.c.attribute_id,
            attribute_value_table.c.attribute_id,
        )
        for column in references:
            stmt = select(exists().where(column == attribute_id))
            if self.session.execute(stmt).scalar():
                return True
        return False


class SqlAlchemyAliasRepository(SqlAlchemyRepository[AttributeAlias]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, AttributeAlias)

    def find(self, label: str, supplier_id: UUID | None) -> AttributeAlias | None:
        scope = (
            attribute_alias_table.c.supplier_id.is_(None)
            if supplier_id is None
            else attribute_alias_table.c.supplier_id == supplier_id
        )
        stmt = select(AttributeAlias).where(attribute_alias_table.c.label == label).where(scope)
        return self.session.execute(stmt).scalar_one_or_none()

    def list(self) -> Sequence[AttributeAlias]:
        stmt = select(AttributeAlias).order_by(
            attribute_alias_table.c.label,
            attribute_alias_table.c.created_at,
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyCategoryRepository(SqlAlchemyRepository[CategoryNode]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, CategoryNode)

    def list(self) -> Sequence[CategoryNode]:
        stmt = select(CategoryNode).order_by(category_table.c.created_at)
        return self.session.execute(stmt).scalars().all()

    def add_binding(self, binding: CategoryAttributeBinding) -> None:
        self.session.add(binding)

    def get_binding(self, category_id: UUID, attribute_id: UUID) -> CategoryAttributeBinding | None:
        stmt = (
            select(CategoryAttributeBinding)
            .where(category_attribute_binding_table.c.category_id == category_id)
            .where(category_attribute_binding_table.c.attribute_id == attribute_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def delete_binding(self, binding: CategoryAttributeBinding) -> None:
        self.session.delete(binding)

    def list_bindings(self) -> Sequence[CategoryAttributeBinding]:
        return self.session.execute(select(CategoryAttributeBinding)).scalars().all()


class SqlAlchemySupplierRepository(SqlAlchemyRepository[Supplier]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Supplier)

    def get_by_code(self, code: str) -> Supplier | None:
        stmt = select(Supplier).where(supplier_table.c.code == code)
        return self.session.execute(stmt).scalar_one_or_none()

    def list(self) -> Sequence[Supplier]:
        stmt = select(Supplier).order_by(supplier_table.c.code)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemySupplierEntityRepository(SqlAlchemyRepository[SupplierEntity]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, SupplierEntity)

    def get_by_external_id(self, supplier_id: UUID, external_id: str) -> SupplierEntity | None:
        stmt = (
            select(SupplierEntity)
            .where(supplier_entity_table.c.supplier_id == supplier_id)
            .where(supplier_entity_table.c.external_id == external_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_by_ids(self, entity_ids: Collection[UUID]) -> Sequence[SupplierEntity]:
        if not entity_ids:
            return []
        stmt = select(SupplierEntity).where(supplier_entity_table.c.id.in_(entity_ids))
        return self.session.execute(stmt).scalars().all()


class SqlAlchemySourceValueRepository(SqlAlchemyRepository[SourceValue]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, SourceValue)

    def list_for_entities(self, entity_ids: Collection[UUID]) -> Sequence[SourceValue]:
        if not entity_ids:
            return []
        stmt = (
            select(SourceValue)
            .where(source_value_table.c.supplier_entity_id.in_(entity_ids))
            .order_by(source_value_table.c.created_at, source_value_table.c.label)
        )
        return self.session.execute(stmt).scalars().all()

    def list_unmapped(self, label: str, supplier_id: UUID | None) -> Sequence[SourceValue]:
        stmt = (
            select(SourceValue)
            .where(source_value_table.c.normalized_label == label)
            .where(source_value_table.c.attribute_id.is_(None))
        )
        if supplier_id is not None:
            stmt = stmt.where(source_value_table.c.supplier_id == supplier_id)
        return self.session.execute(stmt).scalars().all()

    def delete(self, value: SourceValue) -> None:
        self.session.delete(value)


class SqlAlchemyPriceRepository(SqlAlchemyRepository[PriceRecord]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, PriceRecord)

    def find(self, supplier_entity_id: UUID, price_type: str) -> PriceRecord | None:
        stmt = (
            select(PriceRecord)
            .where(price_record_table.c.supplier_entity_id == supplier_entity_id)
            .where(price_record_table.c.price_type == price_type)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_for_entities(self, entity_ids: Collection[UUID]) -> Sequence[PriceRecord]:
        if not entity_ids:
            return []
        stmt = select(PriceRecord).where(price_record_table.c.supplier_entity_id.in_(entity_ids))
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyCatalogEntryRepository(SqlAlchemyRepository[CatalogEntry]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, CatalogEntry)

    def get_by_sku(self, sku: str) -> CatalogEntry | None:
        stmt = select(CatalogEntry).where(catalog_entry_table.c.sku == sku)
        return self.session.execute(stmt).scalar_one_or_none()

    def list_ids(self) -> Sequence[UUID]:
        stmt = select(catalog_entry_table.c.id).order_by(catalog_entry_table.c.sku)
        return self.session.execute(stmt).scalars().all()

    def list_by_status(self, statuses: Collection[RecomputeStatus]) -> Sequence[CatalogEntry]:
        stmt = (
            select(CatalogEntry)
            .where(catalog_entry_table.c.recompute_status.in_(list(statuses)))
            .order_by(catalog_entry_table.c.sku)
        )
        return self.session.execute(stmt).scalars().all()

    def list_in_categories(self, category_ids: Collection[UUID]) -> Sequence[CatalogEntry]:
        if not category_ids:
            return []
        ids = list(category_ids)
        stmt = select(CatalogEntry).where(
            or_(
                catalog_entry_table.c.category_id.in_(ids),
                catalog_entry_table.c.resolved_category_id.in_(ids),
            )
        )
        return self.session.execute(stmt).scalars().all()

    def find_match_candidates(
        self,
        *,
        barcode: str | None,
        vendor_code: str | None,
        brand: str | None,
    ) -> Sequence[CatalogEntry]:
        """Entries sharing a code or brand with the entry itself or with a linked supplier entity.

        Brands are compared with ``normalize_text``; SQLite ``lower()`` folds ASCII only.
        """

        entry_ids: set[UUID] = set()
        if barcode and barcode.strip():
            entry_ids |= self._ids_by_code("barcode", barcode.strip())
        if vendor_code and vendor_code.strip():
            entry_ids |= self._ids_by_code("vendor_code", vendor_code.strip())
        if brand and brand.strip():
            entry_ids |= self._ids_by_brand(normalize_text(brand))
        if not entry_ids:
            return []
        stmt = (
            select(CatalogEntry)
            .where(catalog_entry_table.c.id.in_(entry_ids))
            .order_by(catalog_entry_table.c.sku)
        )
        return self.session.execute(stmt).scalars().all()

    def _ids_by_code(self, column: str, code: str) -> set[UUID]:
        entry = catalog_entry_table
        own = select(entry.c.id).where(
            or_(entry.c[column] == code, entry.c[f"resolved_{column}"] == code)
        )
        linked = (
            select(entity_link_table.c.catalog_entry_id)
            .join(
                supplier_entity_table,
                supplier_entity_table.c.id == entity_link_table.c.supplier_entity_id,
            )
            .where(supplier_entity_table.c[column] == code)
        )
        return {
            *self.session.execute(own).scalars(),
            *self.session.execute(linked).scalars(),
        }

    def _ids_by_brand(self, key: str) -> set[UUID]:
        entry = catalog_entry_table
        own = select(entry.c.id, entry.c.brand, entry.c.resolved_brand).where(
            or_(entry.c.brand.is_not(None), entry.c.resolved_brand.is_not(None))
        )
        linked = (
            select(entity_link_table.c.catalog_entry_id, supplier_entity_table.c.brand)
            .join(
                supplier_entity_table,
                supplier_entity_table.c.id == entity_link_table.c.supplier_entity_id,
            )
            .where(supplier_entity_table.c.brand.is_not(None))
        )
        matched: set[UUID] = set()
        for entry_id, *brands in (*self.session.execute(own), *self.session.execute(linked)):
            if any(value is not None and normalize_text(value) == key for value in brands):
                matched.add(entry_id)
        return matched

    def mark_fresh(self, entry_id: UUID, *, generation: int) -> bool:
        """Clear the staleness flag unless the entry was marked pending after ``generation``."""

        table = catalog_entry_table
        stmt = (
            update(table)
            .where(table.c.id == entry_id)
            .where(table.c.generation == generation)
            .values(recompute_status=RecomputeStatus.FRESH, recompute_error=None)
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount == 1

    def next_sku(self, prefix: str) -> str:
        """Return ``prefix`` followed by the next free zero-padded number."""

        pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
        stmt = select(catalog_entry_table.c.sku).where(catalog_entry_table.c.sku.startswith(prefix))
        highest = 0
        for sku in self.session.execute(stmt).scalars():
            match = pattern.match(cast(str, sku))
            if match is not None:
                highest = max(highest, int(match.group(1)))
        return f"{prefix}{highest + 1:0{SKU_DIGITS}d}"


class SqlAlchemyEntityLinkRepository(SqlAlchemyRepository[EntityLink]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, EntityLink)

    def get_for_supplier_entity(self, supplier_entity_id: UUID) -> EntityLink | None:
        stmt = select(EntityLink).where(entity_link_table.c.supplier_entity_id == supplier_entity_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def list_for_entry(self, entry_id: UUID) -> Sequence[EntityLink]:
        stmt = (
            select(EntityLink)
            .where(entity_link_table.c.catalog_entry_id == entry_id)
            .order_by(entity_link_table.c.created_at, entity_link_table.c.id)
        )
        return self.session.execute(stmt).scalars().all()

    def list_for_supplier_entities(self, entity_ids: Collection[UUID]) -> Sequence[EntityLink]:
        if not entity_ids:
            return []
        stmt = select(EntityLink).where(entity_link_table.c.supplier_entity_id.in_(entity_ids))
        return self.session.execute(stmt).scalars().all()

    def delete(self, link: EntityLink) -> None:
        self.session.delete(link)


class SqlAlchemyAttributeValueRepository(SqlAlchemyRepository[AttributeValue]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, AttributeValue)

    def list_for_entry(self, entry_id: UUID) -> Sequence[AttributeValue]:
        stmt = (
            select(AttributeValue)
            .where(attribute_value_table.c.catalog_entry_id == entry_id)
            .order_by(attribute_value_table.c.created_at, attribute_value_table.c.id)
        )
        return self.session.execute(stmt).scalars().all()

    def find_override(self, entry_id: UUID, attribute_id: UUID) -> AttributeValue | None:
        stmt = (
            select(AttributeValue)
            .where(attribute_value_table.c.catalog_entry_id == entry_id)
            .where(attribute_value_table.c.attribute_id == attribute_id)
            .where(attribute_value_table.c.is_manual_override.is_(True))
        )
        return self.session.execute(stmt).scalars().first()

    def list_conflicting(self, limit: int | None = None) -> Sequence[AttributeValue]:
        stmt = (
            select(AttributeValue)
            .where(attribute_value_table.c.has_conflict.is_(True))
            .where(attribute_value_table.c.is_active.is_(True))
            .order_by(
                attribute_value_table.c.conflict_count.desc(),
                attribute_value_table.c.catalog_entry_id,
                attribute_value_table.c.attribute_id,
            )
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.session.execute(stmt).scalars().all()

    def list_entry_ids_for_attribute(self, attribute_id: UUID) -> Sequence[UUID]:
        stmt = (
            select(attribute_value_table.c.catalog_entry_id)
            .where(attribute_value_table.c.attribute_id == attribute_id)
            .distinct()
        )
        return self.session.execute(stmt).scalars().all()

    def delete(self, value: AttributeValue) -> None:
        self.session.delete(value)


class SqlAlchemyInboxRepository(SqlAlchemyRepository[InboxItem]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, InboxItem)

    def find(self, supplier_id: UUID | None, normalized_label: str) -> InboxItem | None:
        scope = (
            inbox_item_table.c.supplier_id.is_(None)
            if supplier_id is None
            else inbox_item_table.c.supplier_id == supplier_id
        )
        stmt = (
            select(InboxItem)
            .where(inbox_item_table.c.normalized_label == normalized_label)
            .where(scope)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list(self, status: InboxStatus | None = None) -> Sequence[InboxItem]:
        stmt = select(InboxItem).order_by(
            inbox_item_table.c.frequency.desc(),
            inbox_item_table.c.normalized_label,
        )
        if status is not None:
            stmt = stmt.where(inbox_item_table.c.status == status)
        return self.session.execute(stmt).scalars().all()


if TYPE_CHECKING:
    from catalogix.domain.ports.persistence import (
        AliasRepository,
        AttributeDefinitionRepository,
        AttributeValueRepository,
        CatalogEntryRepository,
        CategoryRepository,
        EntityLinkRepository,
        InboxRepository,
        PriceRepository,
        SourceValueRepository,
        SupplierEntityRepository,
        SupplierRepository,
    )

    _session_stub = cast("Session", object())
    _definitions_check: AttributeDefinitionRepository = SqlAlchemyAttributeDefinitionRepository(
        _session_stub
    )
    _aliases_check: AliasRepository = SqlAlchemyAliasRepository(_session_stub)
    _categories_check: CategoryRepository = SqlAlchemyCategoryRepository(_session_stub)
    _suppliers_check: SupplierRepository = SqlAlchemySupplierRepository(_session_stub)
    _entities_check: SupplierEntityRepository = SqlAlchemySupplierEntityRepository(_session_stub)
    _sources_check: SourceValueRepository = SqlAlchemySourceValueRepository(_session_stub)
    _prices_check: PriceRepository = SqlAlchemyPriceRepository(_session_stub)
    _entries_check: CatalogEntryRepository = SqlAlchemyCatalogEntryRepository(_session_stub)
    _links_check: EntityLinkRepository = SqlAlchemyEntityLinkRepository(_session_stub)
    _values_check: AttributeValueRepository = SqlAlchemyAttributeValueRepository(_session_stub)
    _inbox_check: InboxRepository = SqlAlchemyInboxRepository(_session_stub)
