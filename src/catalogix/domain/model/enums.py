"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Locale(StrEnum):
    UK = "uk"
    RU = "ru"
    EN = "en"


class ValueType(StrEnum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUMERATED = "enumerated"


class AttributeSource(StrEnum):
    """Provenance of an attribute definition."""

    MASTER_FEED = "master_feed"
    MANUAL = "manual"
    SUPPLIER = "supplier"


class BindingState(StrEnum):
    ACTIVE = "active"
    DISABLED = "disabled"


class BindingOrigin(StrEnum):
    LOCAL = "local"
    INHERITED = "inherited"
    OVERRIDDEN = "overridden"


class LinkType(StrEnum):
    MANUAL = "manual"
    AUTO_PRIMARY_CODE = "auto_primary_code"
    AUTO_SECONDARY_CODE = "auto_secondary_code"
    AUTO_SIMILARITY = "auto_similarity"


class InboxStatus(StrEnum):
    NEW = "new"
    LINKED = "linked"
    CREATED = "created"
    IGNORED = "ignored"


class PriceClass(StrEnum):
    RETAIL = "retail"
    PURCHASE = "purchase"
    OTHER = "other"


class RecomputeStatus(StrEnum):
    """Staleness indicator shown next to the last published derived state."""

    FRESH = "fresh"
    PENDING = "pending"
    FAILED = "failed"
