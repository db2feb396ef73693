"""SQLAlchemy-backed unit of work for the catalog.

The adapter is process-global: ``startup()`` binds one engine (migrating it to
head) and every ``SqlAlchemyUnitOfWork`` opens its own session from it. Sessions
keep loaded objects usable after commit so services can report on what they wrote.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from catalogix.adapters.sqlalchemy.mappings import start_mappers
from catalogix.adapters.sqlalchemy.migrations import upgrade_head
from catalogix.adapters.sqlalchemy.repositories import (
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
from catalogix.config.storage import get_database_config
from catalogix.domain.ports.unit_of_work import CatalogRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the catalog store is used before ``startup()`` or reconfigured by accident."""


@dataclass(slots=True)
class _Binding:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None


_BINDING = _Binding()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the catalog store to an engine and bring its schema to head."""

    if _BINDING.engine is not None and not force:
        raise StartupError("catalog store already started; pass force=True to rebind it")

    if engine is None:
        database = get_database_config()
        engine = create_engine(database_uri or database.uri, echo=database.echo)
    start_mappers()
    upgrade_head(engine=engine)
    _BINDING.engine = engine
    _BINDING.sessions = sessionmaker(bind=engine, expire_on_commit=False)


def configured_engine() -> Engine | None:
    return _BINDING.engine


def is_started() -> bool:
    return _BINDING.engine is not None


def shutdown() -> None:
    """Dispose the bound engine; the next unit of work needs a new ``startup()``."""

    if _BINDING.engine is not None:
        _BINDING.engine.dispose()
    _BINDING.engine = None
    _BINDING.sessions = None


class SqlAlchemyUnitOfWork:
    """One session and transaction over every catalog repository.

    Leaving the block without ``commit()`` discards the writes; leaving it on an
    exception rolls back explicitly before the session is closed.
    """

    def __init__(self) -> None:
        if _BINDING.sessions is None:
            raise StartupError(
                "catalog store not started; call catalogix.adapters.sqlalchemy.startup() first"
            )
        self._sessions = _BINDING.sessions
        self._session: Session | None = None
        self._repositories: CatalogRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("unit of work is already open")
        self._session = self._sessions()
        self._repositories = _catalog_repositories(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("unit of work is not open")
        return self._session

    @property
    def repositories(self) -> CatalogRepositories:
        if self._repositories is None:
            raise StartupError("unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


def _catalog_repositories(session: Session) -> CatalogRepositories:
    return CatalogRepositories(
        definitions=SqlAlchemyAttributeDefinitionRepository(session),
        aliases=SqlAlchemyAliasRepository(session),
        categories=SqlAlchemyCategoryRepository(session),
        suppliers=SqlAlchemySupplierRepository(session),
        supplier_entities=SqlAlchemySupplierEntityRepository(session),
        source_values=SqlAlchemySourceValueRepository(session),
        prices=SqlAlchemyPriceRepository(session),
        entries=SqlAlchemyCatalogEntryRepository(session),
        links=SqlAlchemyEntityLinkRepository(session),
        attribute_values=SqlAlchemyAttributeValueRepository(session),
        inbox=SqlAlchemyInboxRepository(session),
    )
