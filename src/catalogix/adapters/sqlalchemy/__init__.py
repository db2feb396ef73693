"""SQLAlchemy adapter package for the catalog."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAliasRepository,
    SqlAlchemyAttributeDefinitionRepository,
    SqlAlchemyAttributeValueRepository,
    SqlAlchemyCatalogEntryRepository,
    SqlAlchemyCategoryRepository,
    SqlAlchemyEntityLinkRepository,
    SqlAlchemyInboxRepository,
    SqlAlchemyPriceRepository,
    SqlAlchemySourceValueRepository,
    SqlAlchemySupplierEntityRepository,
    SqlAlchemySupplierRepository,
)
from .unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyAliasRepository",
    "SqlAlchemyAttributeDefinitionRepository",
    "SqlAlchemyAttributeValueRepository",
    "SqlAlchemyCatalogEntryRepository",
    "SqlAlchemyCategoryRepository",
    "SqlAlchemyEntityLinkRepository",
    "SqlAlchemyInboxRepository",
    "SqlAlchemyPriceRepository",
    "SqlAlchemySourceValueRepository",
    "SqlAlchemySupplierEntityRepository",
    "SqlAlchemySupplierRepository",
    "SqlAlchemyUnitOfWork",
    "mapper_registry",
    "shutdown",
    "startup",
]
