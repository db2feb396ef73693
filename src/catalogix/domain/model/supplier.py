"""Supplier-owned records: the read-mostly inputs of reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogix.domain.errors import InputValidationError
from catalogix.domain.model.entity import Entity, LocalizedText, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Supplier(Entity):
    code: str
    name: str
    priority_score: int | None = None

    def __post_init__(self) -> None:
        self.code = self.code.strip()
        if not self.code:
            raise InputValidationError("supplier code must not be blank")


@dataclass(eq=False, kw_only=True)
class SupplierEntity(Entity):
    """One supplier's view of a product."""

    supplier_id: UUID
    external_id: str
    supplier_category: str | None = None
    category_id: UUID | None = None
    names: LocalizedText = field(default_factory=LocalizedText)
    brand: str | None = None
    barcode: str | None = None
    vendor_code: str | None = None
    media: tuple[str, ...] = ()
    stock: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def display_name(self) -> str:
        return self.names.best() or self.external_id


@dataclass(eq=False, kw_only=True)
class SourceValue(Entity):
    """A raw attribute observed on a supplier entity, optionally mapped to a definition."""

    supplier_entity_id: UUID
    supplier_id: UUID
    label: str
    normalized_label: str
    raw_value: str
    attribute_id: UUID | None = None
    confidence: float | None = None
    observed_at: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_mapped(self) -> bool:
        return self.attribute_id is not None

    def map_to(self, attribute_id: UUID, confidence: float) -> None:
        self.attribute_id = attribute_id
        self.confidence = confidence


@dataclass(eq=False, kw_only=True)
class PriceRecord(Entity):
    supplier_entity_id: UUID
    price_type: str
    amount: Decimal
    currency: str = "UAH"
    updated_at: datetime = field(default_factory=utcnow)
