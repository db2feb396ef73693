"""Intake queue items for supplier labels the alias index does not recognise."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from catalogix.domain.errors import DecisionError
from catalogix.domain.model.entity import Entity, utcnow
from catalogix.domain.model.enums import InboxStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

MAX_EXAMPLES: Final[int] = 5


@dataclass(eq=False, kw_only=True)
class InboxItem(Entity):
    label: str
    normalized_label: str
    supplier_id: UUID | None = None
    frequency: int = 0
    examples: tuple[str, ...] = ()
    suggested_attribute_id: UUID | None = None
    suggested_confidence: float | None = None
    status: InboxStatus = InboxStatus.NEW
    resolved_attribute_id: UUID | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_open(self) -> bool:
        return self.status is InboxStatus.NEW

    def record_occurrence(self, example: str | None = None) -> None:
        self.frequency += 1
        if example is not None:
            cleaned = example.strip()
            if cleaned and cleaned not in self.examples and len(self.examples) < MAX_EXAMPLES:
                self.examples = (*self.examples, cleaned)
        self.updated_at = utcnow()

    def suggest(self, attribute_id: UUID | None, confidence: float | None) -> None:
        self.suggested_attribute_id = attribute_id
        self.suggested_confidence = confidence if attribute_id is not None else None
        self.updated_at = utcnow()

    def decide(self, status: InboxStatus, attribute_id: UUID | None = None) -> None:
        if not self.is_open:
            raise DecisionError(f"inbox item {self.id} already decided as {self.status}")
        if status is InboxStatus.NEW:
            raise DecisionError("a decision must move the item out of 'new'")
        if status is not InboxStatus.IGNORED and attribute_id is None:
            raise DecisionError(f"decision {status} requires an attribute")
        self.status = status
        self.resolved_attribute_id = attribute_id
        self.updated_at = utcnow()
