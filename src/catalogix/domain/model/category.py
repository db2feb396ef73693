"""Category tree nodes and their attribute bindings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from catalogix.domain.model.entity import Entity, LocalizedText, utcnow
from catalogix.domain.model.enums import BindingState

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class CategoryNode(Entity):
    """Flat tree node; the hierarchy lives only in ``parent_id``."""

    parent_id: UUID | None = None
    names: LocalizedText = field(default_factory=LocalizedText)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def display_name(self) -> str:
        return self.names.best() or str(self.id)


@dataclass(eq=False, kw_only=True)
class CategoryAttributeBinding(Entity):
    """Binding of a dictionary attribute to one category.

    ``None`` in ``required``/``visible``/``position``/``unit_override``/``constraints``
    means "not overridden here": inherited values pass through unchanged.
    """

    category_id: UUID
    attribute_id: UUID
    required: bool | None = None
    visible: bool | None = None
    position: int | None = None
    unit_override: str | None = None
    constraints: dict[str, Any] | None = None
    state: BindingState = BindingState.ACTIVE
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_disabled(self) -> bool:
        return self.state is BindingState.DISABLED

    def replace(
        self,
        *,
        required: bool | None,
        visible: bool | None,
        position: int | None,
        unit_override: str | None,
        constraints: dict[str, Any] | None,
    ) -> None:
        """Overwrite every field and re-activate the binding."""

        self.required = required
        self.visible = visible
        self.position = position
        self.unit_override = unit_override
        self.constraints = constraints
        self.state = BindingState.ACTIVE
        self.updated_at = utcnow()

    def merge(
        self,
        *,
        required: bool | None = None,
        visible: bool | None = None,
        position: int | None = None,
        unit_override: str | None = None,
        constraints: dict[str, Any] | None = None,
    ) -> None:
        """Replace only the provided (non-null) fields and re-activate the binding."""

        if required is not None:
            self.required = required
        if visible is not None:
            self.visible = visible
        if position is not None:
            self.position = position
        if unit_override is not None:
            self.unit_override = unit_override
        if constraints is not None:
            self.constraints = constraints
        self.state = BindingState.ACTIVE
        self.updated_at = utcnow()

    def disable(self) -> None:
        self.state = BindingState.DISABLED
        self.updated_at = utcnow()
