"""Entity links between supplier records and catalog entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogix.domain.errors import InputValidationError
from catalogix.domain.model.entity import Entity, utcnow
from catalogix.domain.model.enums import LinkType

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class EntityLink(Entity):
    catalog_entry_id: UUID
    supplier_entity_id: UUID
    link_type: LinkType = LinkType.MANUAL
    confidence: float = 1.0
    is_primary: bool = False
    needs_review: bool = False
    created_by: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise InputValidationError(f"link confidence must be within [0, 1], got {self.confidence}")
        if self.link_type is LinkType.AUTO_SIMILARITY:
            self.needs_review = True

    def confirm(self) -> None:
        self.needs_review = False
