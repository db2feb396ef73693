"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from catalogix.adapters.feed import load_feed
from catalogix.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from catalogix.config import get_catalog_policy, get_recompute_config
from catalogix.domain.data_integration import IntakeResult, ingest_batch
from catalogix.domain.ports.unit_of_work import CatalogUnitOfWork
from catalogix.domain.recompute import (
    IntentQueue,
    RecomputePipeline,
    RecomputeWorkerPool,
    record_failure,
    requeue_stale,
    schedule_all,
)

if TYPE_CHECKING:
    from pathlib import Path

    from catalogix.config import RecomputeConfig
    from catalogix.domain.policy import CatalogPolicy
    from catalogix.domain.recompute import DrainReport

UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]


log = getLogger(__name__)


@dataclass(slots=True)
class CatalogRuntime:
    """Wiring shared by every entry point: persistence, policy and the recompute pool."""

    unit_of_work_factory: UnitOfWorkFactory
    policy: CatalogPolicy
    queue: IntentQueue
    pool: RecomputeWorkerPool


@dataclass(slots=True)
class ImportReport:
    results: list[IntakeResult] = field(default_factory=list[IntakeResult])
    rejected: list[tuple[str, str]] = field(default_factory=list[tuple[str, str]])
    drain: DrainReport | None = None

    @property
    def created_entries(self) -> int:
        return sum(1 for result in self.results if result.created_entry)

    @property
    def unmatched_labels(self) -> int:
        return sum(result.unmatched for result in self.results)


def build_runtime(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    policy: CatalogPolicy | None = None,
    recompute: RecomputeConfig | None = None,
) -> CatalogRuntime:
    """Assemble the runtime; the SQLAlchemy adapter is started on first use."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyUnitOfWork
    effective_policy = policy or get_catalog_policy()
    settings = recompute or get_recompute_config()

    queue = IntentQueue(max_attempts=settings.max_attempts)
    pipeline = RecomputePipeline(unit_of_work_factory=unit_of_work_factory, policy=effective_policy)
    pool = RecomputeWorkerPool(
        queue=queue,
        run=pipeline,
        on_exhausted=partial(record_failure, unit_of_work_factory),
        max_workers=settings.max_workers,
    )
    return CatalogRuntime(
        unit_of_work_factory=unit_of_work_factory,
        policy=effective_policy,
        queue=queue,
        pool=pool,
    )


def drain_recompute(runtime: CatalogRuntime) -> DrainReport:
    """Run queued recomputations until the queue is idle."""

    log.info("Draining %s queued recompute intent(s)", len(runtime.queue))
    return runtime.pool.drain()


def import_feed(
    path: Path,
    *,
    runtime: CatalogRuntime | None = None,
    drain: bool = True,
) -> ImportReport:
    """Ingest a JSON-lines supplier feed and, unless told otherwise, publish the results."""

    effective_runtime = runtime or build_runtime()
    log.info("Starting feed import from %s", path)
    batch = load_feed(path)

    results, rejected = ingest_batch(
        batch.entities,
        batch.prices,
        unit_of_work_factory=effective_runtime.unit_of_work_factory,
        intents=effective_runtime.queue,
        policy=effective_runtime.policy,
    )
    report = ImportReport(
        results=results,
        rejected=[(f"line {number}", message) for number, message in batch.errors] + rejected,
    )
    if drain:
        report.drain = drain_recompute(effective_runtime)

    log.info(
        "Finished feed import: stored=%s, rejected=%s, new_entries=%s, unmatched=%s",
        len(report.results),
        len(report.rejected),
        report.created_entries,
        report.unmatched_labels,
    )
    return report


def recompute_all(runtime: CatalogRuntime | None = None) -> DrainReport:
    """Recompute every catalog entry from its source-of-truth rows."""

    effective_runtime = runtime or build_runtime()
    schedule_all(
        unit_of_work_factory=effective_runtime.unit_of_work_factory,
        intents=effective_runtime.queue,
    )
    return drain_recompute(effective_runtime)


def recover_stale(runtime: CatalogRuntime | None = None) -> DrainReport:
    """Finish recomputations a crash or exhausted retries left pending or failed."""

    effective_runtime = runtime or build_runtime()
    requeue_stale(
        unit_of_work_factory=effective_runtime.unit_of_work_factory,
        intents=effective_runtime.queue,
    )
    return drain_recompute(effective_runtime)
