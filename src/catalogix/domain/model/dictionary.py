"""Attribute dictionary: global attribute definitions and their aliases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogix.domain.errors import InputValidationError
from catalogix.domain.model.entity import Entity, LocalizedText, utcnow
from catalogix.domain.model.enums import AttributeSource, ValueType

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from catalogix.domain.model.rules import PreferredSourceRule


@dataclass(eq=False, kw_only=True)
class AttributeDefinition(Entity):
    """A globally defined, typed product characteristic.

    ``key`` is the immutable identity key (for example ``manual:color``); ``code``
    is the operator-facing short code used by exact code matching.
    """

    key: str
    code: str
    names: LocalizedText = field(default_factory=LocalizedText)
    value_type: ValueType = ValueType.TEXT
    options: tuple[str, ...] = ()
    unit_kind: str | None = None
    default_unit: str | None = None
    source: AttributeSource = AttributeSource.MANUAL
    needs_review: bool = False
    preferred_source: PreferredSourceRule | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.key = self.key.strip()
        self.code = self.code.strip()
        if not self.key:
            raise InputValidationError("attribute key must not be blank")
        if not self.code:
            raise InputValidationError("attribute code must not be blank")
        if self.options and self.value_type is not ValueType.ENUMERATED:
            raise InputValidationError("only enumerated attributes may declare options")

    @property
    def display_name(self) -> str:
        return self.names.best() or self.code

    def mark_reviewed(self) -> None:
        self.needs_review = False


@dataclass(eq=False, kw_only=True)
class AttributeAlias(Entity):
    """Maps a normalized supplier label to a definition.

    ``attribute_id`` is ``None`` for labels an operator chose to ignore.
    ``supplier_id`` scopes the alias to one supplier; ``None`` means global.
    """

    label: str
    attribute_id: UUID | None
    supplier_id: UUID | None = None
    confidence: float = 1.0
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_ignored(self) -> bool:
        return self.attribute_id is None
