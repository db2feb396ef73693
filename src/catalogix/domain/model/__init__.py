"""Catalog domain model."""

from __future__ import annotations

from .attribute_values import AttributeValue
from .catalog import CatalogEntry, EntrySnapshot, ReadinessReason, ReadinessVerdict
from .category import CategoryAttributeBinding, CategoryNode
from .dictionary import AttributeAlias, AttributeDefinition
from .entity import Entity, LocalizedText, new_id, utcnow
from .enums import (
    AttributeSource,
    BindingOrigin,
    BindingState,
    InboxStatus,
    LinkType,
    Locale,
    PriceClass,
    RecomputeStatus,
    ValueType,
)
from .inbox import MAX_EXAMPLES, InboxItem
from .links import EntityLink
from .rules import (
    FixedSupplier,
    MostRecent,
    Oldest,
    PreferredSourceRule,
    PriorityScore,
    format_rule,
    parse_rule,
)
from .supplier import PriceRecord, SourceValue, Supplier, SupplierEntity
from .values import (
    BooleanValue,
    NumberValue,
    OptionValue,
    TextValue,
    TypedValue,
    value_from_payload,
    value_to_payload,
)

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "LocalizedText",
    "new_id",
    "utcnow",
    # enums
    "AttributeSource",
    "BindingOrigin",
    "BindingState",
    "InboxStatus",
    "LinkType",
    "Locale",
    "PriceClass",
    "RecomputeStatus",
    "ValueType",
    # dictionary & schema
    "AttributeAlias",
    "AttributeDefinition",
    "CategoryAttributeBinding",
    "CategoryNode",
    # supplier inputs
    "PriceRecord",
    "SourceValue",
    "Supplier",
    "SupplierEntity",
    # catalog
    "AttributeValue",
    "CatalogEntry",
    "EntityLink",
    "EntrySnapshot",
    "ReadinessReason",
    "ReadinessVerdict",
    # intake
    "MAX_EXAMPLES",
    "InboxItem",
    # values & rules
    "BooleanValue",
    "FixedSupplier",
    "MostRecent",
    "NumberValue",
    "Oldest",
    "OptionValue",
    "PreferredSourceRule",
    "PriorityScore",
    "TextValue",
    "TypedValue",
    "format_rule",
    "parse_rule",
    "value_from_payload",
    "value_to_payload",
]
