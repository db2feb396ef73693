"""Operator edits of the entity link graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from catalogix.domain.linking import assign_primary, ensure_unlinked
from catalogix.domain.model import EntityLink, LinkType
from catalogix.domain.recompute.scheduling import mark_pending

from ._scope import require

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from catalogix.domain.ports.unit_of_work import CatalogUnitOfWork
    from catalogix.domain.recompute.intents import IntentSink

log = logging.getLogger(__name__)


def link_entities(
    entry_id: UUID,
    supplier_entity_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    link_type: LinkType = LinkType.MANUAL,
    confidence: float = 1.0,
    is_primary: bool = False,
    created_by: str | None = None,
) -> EntityLink:
    """Attach a supplier entity to a catalog entry.

    Raises ``LinkConflictError`` when the supplier entity is already linked; the
    caller must unlink it first. The link becomes primary when asked to or when
    the entry has no primary link yet.
    """

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        require(repositories.entries.get(entry_id), "catalog entry", entry_id)
        require(
            repositories.supplier_entities.get(supplier_entity_id),
            "supplier entity",
            supplier_entity_id,
        )
        ensure_unlinked(
            supplier_entity_id,
            repositories.links.get_for_supplier_entity(supplier_entity_id),
        )

        existing = list(repositories.links.list_for_entry(entry_id))
        link = EntityLink(
            catalog_entry_id=entry_id,
            supplier_entity_id=supplier_entity_id,
            link_type=link_type,
            confidence=confidence,
            created_by=created_by,
        )
        if is_primary or not any(item.is_primary for item in existing):
            assign_primary(existing, link)
            link.is_primary = True
        repositories.links.add(link)
        scheduled = mark_pending(repositories, [entry_id])
        uow.commit()

    intents.submit(scheduled, reason="link_created")
    log.info("Linked supplier entity %s to %s (%s)", supplier_entity_id, entry_id, link_type)
    return link


def unlink(
    supplier_entity_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> EntityLink:
    """Remove the link of a supplier entity.

    Other links of the entry keep their flags; without a primary link the
    earliest one stands in when aggregating.
    """

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        link = require(
            repositories.links.get_for_supplier_entity(supplier_entity_id),
            "link",
            supplier_entity_id,
        )
        repositories.links.delete(link)
        scheduled = mark_pending(repositories, [link.catalog_entry_id])
        uow.commit()

    intents.submit(scheduled, reason="link_removed")
    log.info("Unlinked supplier entity %s from %s", supplier_entity_id, link.catalog_entry_id)
    return link


def set_primary(
    link_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> EntityLink:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        link = require(repositories.links.get(link_id), "link", link_id)
        changed = assign_primary(repositories.links.list_for_entry(link.catalog_entry_id), link)
        scheduled = mark_pending(repositories, [link.catalog_entry_id]) if changed else []
        uow.commit()

    intents.submit(scheduled, reason="primary_changed")
    return link


def confirm_link(
    link_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> EntityLink:
    """Clear the review flag left by similarity matching."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        link = require(repositories.links.get(link_id), "link", link_id)
        link.confirm()
        scheduled = mark_pending(repositories, [link.catalog_entry_id])
        uow.commit()

    intents.submit(scheduled, reason="link_confirmed")
    return link
