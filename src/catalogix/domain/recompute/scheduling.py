"""Helpers that connect committed writes to the recompute intent queue."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from catalogix.domain.model import RecomputeStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from uuid import UUID

    from catalogix.domain.ports.unit_of_work import CatalogRepositories, CatalogUnitOfWork
    from catalogix.domain.recompute.intents import IntentSink

log = logging.getLogger(__name__)


def mark_pending(repositories: CatalogRepositories, entry_ids: Iterable[UUID]) -> list[UUID]:
    """Flag entries as stale inside the caller's transaction; return the ids that exist."""

    marked: list[UUID] = []
    for entry_id in dict.fromkeys(entry_ids):
        entry = repositories.entries.get(entry_id)
        if entry is None:
            continue
        entry.mark_pending()
        marked.append(entry_id)
    return marked


def schedule_all(
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> int:
    """Mark every entry pending and enqueue it ("recompute everything")."""

    with unit_of_work_factory() as uow:
        entry_ids = list(uow.repositories.entries.list_ids())
        mark_pending(uow.repositories, entry_ids)
        uow.commit()
    intents.submit(entry_ids, reason="recompute_all")
    log.info("Scheduled recompute of %d catalog entries", len(entry_ids))
    return len(entry_ids)


def requeue_stale(
    *,
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    intents: IntentSink,
) -> int:
    """Re-enqueue entries left pending or failed, e.g. after a crash."""

    with unit_of_work_factory() as uow:
        stale = uow.repositories.entries.list_by_status(
            (RecomputeStatus.PENDING, RecomputeStatus.FAILED)
        )
        entry_ids = [entry.id for entry in stale]
    intents.submit(entry_ids, reason="requeue_stale")
    if entry_ids:
        log.info("Re-queued %d stale catalog entries", len(entry_ids))
    return len(entry_ids)


def record_failure(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    entry_id: UUID,
    error: str,
) -> None:
    """Persist the failed staleness state; the published derived fields stay as they were."""

    with unit_of_work_factory() as uow:
        entry = uow.repositories.entries.get(entry_id)
        if entry is None:
            return
        entry.mark_failed(error)
        uow.commit()
    log.warning("Catalog entry %s marked failed: %s", entry_id, error)
