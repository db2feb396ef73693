"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from catalogix.domain.ports.persistence import (
        AliasRepository,
        AttributeDefinitionRepository,
        AttributeValueRepository,
        CatalogEntryRepository,
        CategoryRepository,
        EntityLinkRepository,
        InboxRepository,
        PriceRepository,
        SourceValueRepository,
        SupplierEntityRepository,
        SupplierRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class CatalogRepositories(RepositoryCollection):
    """Every repository the reconciliation engine touches."""

    definitions: AttributeDefinitionRepository
    aliases: AliasRepository
    categories: CategoryRepository
    suppliers: SupplierRepository
    supplier_entities: SupplierEntityRepository
    source_values: SourceValueRepository
    prices: PriceRepository
    entries: CatalogEntryRepository
    links: EntityLinkRepository
    attribute_values: AttributeValueRepository
    inbox: InboxRepository


type CatalogUnitOfWork = UnitOfWork[CatalogRepositories]
