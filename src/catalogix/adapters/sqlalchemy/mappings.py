"""SQLAlchemy mapping metadata for the catalog domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from catalogix.domain.model import (
    AttributeAlias,
    AttributeDefinition,
    AttributeSource,
    AttributeValue,
    BindingState,
    CatalogEntry,
    CategoryAttributeBinding,
    CategoryNode,
    EntityLink,
    InboxItem,
    InboxStatus,
    LinkType,
    LocalizedText,
    PreferredSourceRule,
    PriceRecord,
    ReadinessReason,
    ReadinessVerdict,
    RecomputeStatus,
    SourceValue,
    Supplier,
    SupplierEntity,
    TypedValue,
    ValueType,
    format_rule,
    parse_rule,
    value_from_payload,
    value_to_payload,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class DecimalType(TypeDecorator[Decimal]):
    """Exact decimals stored as text, so sqlite keeps every digit."""

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return format(value, "f")

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


class LocalizedTextType(TypeDecorator[LocalizedText]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: LocalizedText | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value.as_dict(), ensure_ascii=False, sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> LocalizedText:
        _ = dialect
        if value is None:
            return LocalizedText()
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return LocalizedText()
        return LocalizedText.from_dict(cast(dict[str, str | None], loaded))


class StringTupleType(TypeDecorator[tuple[str, ...]]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value), ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(item for item in items if isinstance(item, str))


class JSONDictType(TypeDecorator[dict[str, Any]]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: dict[str, Any] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False, sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> dict[str, Any] | None:
        _ = dialect
        if value is None:
            return None
        loaded = json.loads(value)
        return cast(dict[str, Any], loaded) if isinstance(loaded, dict) else None


class TypedValueType(TypeDecorator[TypedValue]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: TypedValue | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value_to_payload(value), ensure_ascii=False, sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> TypedValue | None:
        _ = dialect
        if value is None:
            return None
        return value_from_payload(json.loads(value))


class PreferredSourceRuleType(TypeDecorator[PreferredSourceRule]):
    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value: PreferredSourceRule | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return format_rule(value)

    def process_result_value(self, value: str | None, dialect: Dialect) -> PreferredSourceRule | None:
        _ = dialect
        if value is None:
            return None
        return parse_rule(value)


class ReadinessVerdictType(TypeDecorator[ReadinessVerdict]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: ReadinessVerdict | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        payload = {
            "blocking": [_reason_payload(reason) for reason in value.blocking],
            "warnings": [_reason_payload(reason) for reason in value.warnings],
        }
        return json.dumps(payload, ensure_ascii=False, sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> ReadinessVerdict | None:
        _ = dialect
        if value is None:
            return None
        loaded = cast(dict[str, list[dict[str, Any]]], json.loads(value))
        return ReadinessVerdict(
            blocking=tuple(_reason_from_payload(item) for item in loaded.get("blocking", [])),
            warnings=tuple(_reason_from_payload(item) for item in loaded.get("warnings", [])),
        )


def _reason_payload(reason: ReadinessReason) -> dict[str, Any]:
    return {"code": reason.code, "messages": reason.messages.as_dict()}


def _reason_from_payload(payload: dict[str, Any]) -> ReadinessReason:
    return ReadinessReason(
        code=str(payload["code"]),
        messages=LocalizedText.from_dict(payload.get("messages", {})),
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Dictionary and schema -------------------------------------------------------

attribute_definition_table = Table(
    "attribute_definition",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("key", String, nullable=False, unique=True),
    Column("code", String, nullable=False),
    Column("names", LocalizedTextType(), nullable=False),
    Column("value_type", Enum(ValueType, native_enum=False), nullable=False),
    Column("options", StringTupleType(), nullable=False, default=()),
    Column("unit_kind", String, nullable=True),
    Column("default_unit", String, nullable=True),
    Column("source", Enum(AttributeSource, native_enum=False), nullable=False),
    Column("needs_review", Boolean, nullable=False, default=False),
    Column("preferred_source", PreferredSourceRuleType(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

supplier_table = Table(
    "supplier",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("code", String, nullable=False, unique=True),
    Column("name", String, nullable=False),
    Column("priority_score", Integer, nullable=True),
)

attribute_alias_table = Table(
    "attribute_alias",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("label", String, nullable=False),
    Column(
        "attribute_id",
        UUIDColumnType,
        ForeignKey("attribute_definition.id"),
        nullable=True,
    ),
    Column(
        "supplier_id",
        UUIDColumnType,
        ForeignKey("supplier.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("confidence", Float, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("label", "supplier_id"),
    Index("ix_attribute_alias_label", "label"),
)

category_table = Table(
    "category",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("parent_id", UUIDColumnType, ForeignKey("category.id"), nullable=True),
    Column("names", LocalizedTextType(), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

category_attribute_binding_table = Table(
    "category_attribute_binding",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "category_id",
        UUIDColumnType,
        ForeignKey("category.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "attribute_id",
        UUIDColumnType,
        ForeignKey("attribute_definition.id"),
        nullable=False,
    ),
    Column("required", Boolean, nullable=True),
    Column("visible", Boolean, nullable=True),
    Column("position", Integer, nullable=True),
    Column("unit_override", String, nullable=True),
    Column("constraints", JSONDictType(), nullable=True),
    Column("state", Enum(BindingState, native_enum=False), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    UniqueConstraint("category_id", "attribute_id"),
)

# Supplier inputs ---------------------------------------------------------------

supplier_entity_table = Table(
    "supplier_entity",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "supplier_id",
        UUIDColumnType,
        ForeignKey("supplier.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("external_id", String, nullable=False),
    Column("supplier_category", String, nullable=True),
    Column(
        "category_id",
        UUIDColumnType,
        ForeignKey("category.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("names", LocalizedTextType(), nullable=False),
    Column("brand", String, nullable=True),
    Column("barcode", String, nullable=True),
    Column("vendor_code", String, nullable=True),
    Column("media", StringTupleType(), nullable=False, default=()),
    Column("stock", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    UniqueConstraint("supplier_id", "external_id"),
)

source_value_table = Table(
    "source_value",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "supplier_entity_id",
        UUIDColumnType,
        ForeignKey("supplier_entity.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("supplier_id", UUIDColumnType, ForeignKey("supplier.id"), nullable=False),
    Column("label", String, nullable=False),
    Column("normalized_label", String, nullable=False),
    Column("raw_value", Text, nullable=False),
    Column(
        "attribute_id",
        UUIDColumnType,
        ForeignKey("attribute_definition.id"),
        nullable=True,
    ),
    Column("confidence", Float, nullable=True),
    Column("observed_at", UTCDateTime(), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("supplier_entity_id", "label"),
    Index("ix_source_value_normalized_label", "normalized_label"),
)

price_record_table = Table(
    "price_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "supplier_entity_id",
        UUIDColumnType,
        ForeignKey("supplier_entity.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("price_type", String, nullable=False),
    Column("amount", DecimalType(), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    UniqueConstraint("supplier_entity_id", "price_type"),
)

# Catalog -------------------------------------------------------------------------

catalog_entry_table = Table(
    "catalog_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("sku", String, nullable=False, unique=True),
    Column("names", LocalizedTextType(), nullable=False),
    Column(
        "category_id",
        UUIDColumnType,
        ForeignKey("category.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("brand", String, nullable=True),
    Column("barcode", String, nullable=True),
    Column("vendor_code", String, nullable=True),
    Column("display_names", LocalizedTextType(), nullable=False),
    Column("resolved_category_id", UUIDColumnType, nullable=True),
    Column("resolved_brand", String, nullable=True),
    Column("resolved_barcode", String, nullable=True),
    Column("resolved_vendor_code", String, nullable=True),
    Column("media", StringTupleType(), nullable=False, default=()),
    Column("total_stock", Integer, nullable=False, default=0),
    Column("min_retail_price", DecimalType(), nullable=True),
    Column("max_retail_price", DecimalType(), nullable=True),
    Column("min_purchase_price", DecimalType(), nullable=True),
    Column("preferred_supplier_id", UUIDColumnType, nullable=True),
    Column("verdict", ReadinessVerdictType(), nullable=True),
    Column("quality_score", Integer, nullable=False, default=0),
    Column("recompute_status", Enum(RecomputeStatus, native_enum=False), nullable=False),
    Column("recompute_error", Text, nullable=True),
    Column("generation", Integer, nullable=False, default=0),
    Column("computed_at", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_catalog_entry_recompute_status", "recompute_status"),
    Index("ix_catalog_entry_barcode", "barcode", "resolved_barcode"),
    Index("ix_catalog_entry_vendor_code", "vendor_code", "resolved_vendor_code"),
)

entity_link_table = Table(
    "entity_link",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "catalog_entry_id",
        UUIDColumnType,
        ForeignKey("catalog_entry.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "supplier_entity_id",
        UUIDColumnType,
        ForeignKey("supplier_entity.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("link_type", Enum(LinkType, native_enum=False), nullable=False),
    Column("confidence", Float, nullable=False),
    Column("is_primary", Boolean, nullable=False, default=False),
    Column("needs_review", Boolean, nullable=False, default=False),
    Column("created_by", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_entity_link_catalog_entry_id", "catalog_entry_id"),
)

attribute_value_table = Table(
    "attribute_value",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "catalog_entry_id",
        UUIDColumnType,
        ForeignKey("catalog_entry.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "attribute_id",
        UUIDColumnType,
        ForeignKey("attribute_definition.id"),
        nullable=False,
    ),
    Column("supplier_id", UUIDColumnType, nullable=True),
    Column("supplier_entity_id", UUIDColumnType, nullable=True),
    Column("raw_value", Text, nullable=False),
    Column("value", TypedValueType(), nullable=True),
    Column("is_active", Boolean, nullable=False, default=False),
    Column("is_manual_override", Boolean, nullable=False, default=False),
    Column("priority_score", Integer, nullable=False, default=0),
    Column("has_conflict", Boolean, nullable=False, default=False),
    Column("conflict_count", Integer, nullable=False, default=0),
    Column("observed_at", UTCDateTime(), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_attribute_value_entry_attribute", "catalog_entry_id", "attribute_id"),
)

# Intake ------------------------------------------------------------------------------

inbox_item_table = Table(
    "inbox_item",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("label", String, nullable=False),
    Column("normalized_label", String, nullable=False),
    Column(
        "supplier_id",
        UUIDColumnType,
        ForeignKey("supplier.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("frequency", Integer, nullable=False, default=0),
    Column("examples", StringTupleType(), nullable=False, default=()),
    Column(
        "suggested_attribute_id",
        UUIDColumnType,
        ForeignKey("attribute_definition.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("suggested_confidence", Float, nullable=True),
    Column("status", Enum(InboxStatus, native_enum=False), nullable=False),
    Column("resolved_attribute_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    UniqueConstraint("supplier_id", "normalized_label"),
    Index("ix_inbox_item_status", "status"),
)

TABLES_BY_CLASS: dict[type[Any], Table] = {
    AttributeDefinition: attribute_definition_table,
    AttributeAlias: attribute_alias_table,
    Supplier: supplier_table,
    CategoryNode: category_table,
    CategoryAttributeBinding: category_attribute_binding_table,
    SupplierEntity: supplier_entity_table,
    SourceValue: source_value_table,
    PriceRecord: price_record_table,
    CatalogEntry: catalog_entry_table,
    EntityLink: entity_link_table,
    AttributeValue: attribute_value_table,
    InboxItem: inbox_item_table,
}


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model.

    Entities are mapped flat: references between aggregates are plain id
    columns, and repositories query them explicitly.
    """

    log.info("Starting SQLAlchemy mappers")

    for entity_cls, table in TABLES_BY_CLASS.items():
        mapper_registry.map_imperatively(entity_cls, table)

    configure_mappers()
    return mapper_registry

