"""Per-entry attribute value rows managed by the conflict resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogix.domain.model.entity import Entity, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from catalogix.domain.model.values import TypedValue


@dataclass(eq=False, kw_only=True)
class AttributeValue(Entity):
    """One candidate value for a (catalog entry, attribute) pair.

    Supplier rows carry their supplier and supplier entity; the manual override
    row carries neither. ``value`` is ``None`` when the raw value could not be
    read as the attribute's declared type; such rows never activate.
    """

    catalog_entry_id: UUID
    attribute_id: UUID
    supplier_id: UUID | None = None
    supplier_entity_id: UUID | None = None
    raw_value: str
    value: TypedValue | None = None
    is_active: bool = False
    is_manual_override: bool = False
    priority_score: int = 0
    has_conflict: bool = False
    conflict_count: int = 0
    observed_at: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_empty(self) -> bool:
        return self.value is None
