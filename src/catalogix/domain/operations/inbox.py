"""Triage of unmatched supplier labels.

Every decision writes an alias scoped to the item's supplier, maps the source
values still waiting on that label and schedules the affected entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalogix.domain.errors import CatalogError, DecisionError
from catalogix.domain.mapping import AliasIndex
from catalogix.domain.model import AttributeSource, InboxStatus, LocalizedText, ValueType
from catalogix.domain.recompute.scheduling import mark_pending

from ._scope import require, write_alias
from .dictionary import add_definition

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from uuid import UUID

    from catalogix.domain.model import AttributeDefinition, InboxItem
    from catalogix.domain.ports.unit_of_work import CatalogRepositories, CatalogUnitOfWork
    from catalogix.domain.recompute.intents import IntentSink

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DecisionOutcome:
    item_id: UUID
    succeeded: bool
    error: str | None = None


def list_inbox(
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    status: InboxStatus | None = InboxStatus.NEW,
) -> list[InboxItem]:
    """Inbox items, most frequent first."""

    with unit_of_work_factory() as uow:
        items = list(uow.repositories.inbox.list(status))
    return sorted(items, key=lambda item: (-item.frequency, item.normalized_label, str(item.id)))


def link_inbox_item(
    item_id: UUID,
    attribute_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> InboxItem:
    """Map the item's label onto an existing attribute."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        item = require(repositories.inbox.get(item_id), "inbox item", item_id)
        require(repositories.definitions.get(attribute_id), "attribute", attribute_id)
        scheduled = _decide(repositories, item, InboxStatus.LINKED, attribute_id)
        uow.commit()
    intents.submit(scheduled, reason="inbox_linked")
    return item


def create_attribute_from_inbox(
    item_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    key: str | None = None,
    code: str | None = None,
    names: LocalizedText | None = None,
    value_type: ValueType = ValueType.TEXT,
    options: tuple[str, ...] = (),
    unit_kind: str | None = None,
    default_unit: str | None = None,
) -> AttributeDefinition:
    """Create a supplier-provenance definition from the item and link the label to it.

    The new definition is flagged for review.
    """

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        item = require(repositories.inbox.get(item_id), "inbox item", item_id)
        if not item.is_open:
            raise DecisionError(f"inbox item {item.id} already decided as {item.status}")
        effective_code = code or item.normalized_label
        definition = add_definition(
            repositories,
            key=key or f"supplier:{effective_code}",
            code=effective_code,
            names=names or LocalizedText(uk=item.label, ru=item.label),
            value_type=value_type,
            options=options,
            unit_kind=unit_kind,
            default_unit=default_unit,
            source=AttributeSource.SUPPLIER,
            needs_review=True,
        )
        scheduled = _decide(repositories, item, InboxStatus.CREATED, definition.id)
        uow.commit()
    intents.submit(scheduled, reason="inbox_created")
    log.info("Created attribute %s from inbox label %r", definition.key, item.label)
    return definition


def ignore_inbox_item(
    item_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
) -> InboxItem:
    """Mark the label as noise; future occurrences are skipped without an inbox entry."""

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        item = require(repositories.inbox.get(item_id), "inbox item", item_id)
        _decide(repositories, item, InboxStatus.IGNORED, None)
        uow.commit()
    return item


def accept_suggestion(
    item_id: UUID,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> InboxItem:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        item = require(repositories.inbox.get(item_id), "inbox item", item_id)
        if item.suggested_attribute_id is None:
            raise DecisionError(f"inbox item {item.id} has no suggestion")
        scheduled = _decide(repositories, item, InboxStatus.LINKED, item.suggested_attribute_id)
        uow.commit()
    intents.submit(scheduled, reason="inbox_accepted")
    return item


def batch_link_suggested(
    item_ids: Iterable[UUID] | None = None,
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
    min_confidence: float = 0.0,
) -> list[DecisionOutcome]:
    """Accept suggestions item by item; one failure does not stop the batch.

    Without explicit ids every open item whose suggestion reaches
    ``min_confidence`` is accepted.
    """

    if item_ids is None:
        with unit_of_work_factory() as uow:
            item_ids = [
                item.id
                for item in uow.repositories.inbox.list(InboxStatus.NEW)
                if item.suggested_attribute_id is not None
                and (item.suggested_confidence or 0.0) >= min_confidence
            ]

    outcomes: list[DecisionOutcome] = []
    for item_id in item_ids:
        try:
            accept_suggestion(item_id, unit_of_work_factory=unit_of_work_factory, intents=intents)
        except CatalogError as exc:
            log.warning("Could not accept suggestion for %s: %s", item_id, exc)
            outcomes.append(DecisionOutcome(item_id=item_id, succeeded=False, error=str(exc)))
        else:
            outcomes.append(DecisionOutcome(item_id=item_id, succeeded=True))
    return outcomes


def refresh_inbox_suggestions(*, unit_of_work_factory: Callable[[], CatalogUnitOfWork]) -> int:
    """Re-run the dictionary tiers over open items; return how many suggestions changed."""

    changed = 0
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        index = AliasIndex(repositories.definitions.list(), repositories.aliases.list())
        for item in repositories.inbox.list(InboxStatus.NEW):
            outcome = index.lookup(item.normalized_label, item.supplier_id)
            match = outcome.match
            attribute_id = match.attribute_id if match is not None else None
            confidence = match.confidence if match is not None else None
            if (item.suggested_attribute_id, item.suggested_confidence) != (attribute_id, confidence):
                item.suggest(attribute_id, confidence)
                changed += 1
        uow.commit()
    if changed:
        log.info("Refreshed %d inbox suggestions", changed)
    return changed


def _decide(
    repositories: CatalogRepositories,
    item: InboxItem,
    status: InboxStatus,
    attribute_id: UUID | None,
) -> list[UUID]:
    item.decide(status, attribute_id)
    _, affected = write_alias(
        repositories,
        label=item.normalized_label,
        attribute_id=attribute_id,
        supplier_id=item.supplier_id,
    )
    return mark_pending(repositories, affected)
