"""Error taxonomy shared by the catalog domain.

Unresolved attribute conflicts are deliberately absent: they are reported through
the conflict flag on attribute values, never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class CatalogError(Exception):
    """Base class for catalog domain failures."""


class InputValidationError(CatalogError, ValueError):
    """Raised when an inbound record or operator request is malformed."""


class ValueCoercionError(InputValidationError):
    """Raised when a raw value cannot be read as the attribute's declared type."""


class NotFoundError(CatalogError, LookupError):
    """Raised when a referenced row does not exist."""

    def __init__(self, kind: str, key: object) -> None:
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class LinkConflictError(CatalogError):
    """Raised when a supplier entity is already linked to a catalog entry."""

    def __init__(self, supplier_entity_id: UUID, catalog_entry_id: UUID) -> None:
        super().__init__(
            f"supplier entity {supplier_entity_id} is already linked to catalog entry "
            f"{catalog_entry_id}; unlink it first"
        )
        self.supplier_entity_id = supplier_entity_id
        self.catalog_entry_id = catalog_entry_id


class CategoryCycleError(CatalogError):
    """Raised when a category edit would make the tree cyclic."""


class DefinitionInUseError(CatalogError):
    """Raised when deleting an attribute definition that is still referenced."""


class DecisionError(CatalogError):
    """Raised when an inbox decision is applied to an item that is already decided."""
