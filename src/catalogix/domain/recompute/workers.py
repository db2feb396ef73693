"""Bounded worker pool draining the recompute intent queue."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from catalogix.domain.recompute.intents import IntentQueue, RecomputeIntent

log = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass(slots=True)
class DrainReport:
    completed: int = 0
    retried: int = 0
    failed: list[UUID] = field(default_factory=list)


class RecomputeWorkerPool:
    """Run queued intents with at most ``max_workers`` recomputations in flight.

    ``run`` recomputes one entry and raises on failure; ``on_exhausted`` records
    the final failure once the queue stops retrying the entry.
    """

    def __init__(
        self,
        *,
        queue: IntentQueue,
        run: Callable[[UUID], object],
        on_exhausted: Callable[[UUID, str], None] | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.queue = queue
        self.run = run
        self.on_exhausted = on_exhausted
        self.max_workers = max_workers

    def drain(self) -> DrainReport:
        """Process intents until the queue is empty, including retries and re-queues."""

        report = DrainReport()
        in_flight: dict[Future[object], RecomputeIntent] = {}
        with ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="recompute",
        ) as executor:
            while True:
                for intent in self.queue.claim(self.max_workers - len(in_flight)):
                    in_flight[executor.submit(self.run, intent.entry_id)] = intent
                if not in_flight:
                    break
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    self._settle(in_flight.pop(future), future, report)

        log.info(
            "Recompute drain finished: completed=%s, retried=%s, failed=%s",
            report.completed,
            report.retried,
            len(report.failed),
        )
        return report

    def _settle(self, intent: RecomputeIntent, future: Future[object], report: DrainReport) -> None:
        error = future.exception()
        if error is None:
            self.queue.complete(intent)
            report.completed += 1
            return

        log.error(
            "Recompute of %s failed (attempt %d): %s",
            intent.entry_id,
            intent.attempt,
            error,
            exc_info=error,
        )
        if self.queue.fail(intent):
            report.retried += 1
            return
        report.failed.append(intent.entry_id)
        if self.on_exhausted is not None:
            self.on_exhausted(intent.entry_id, f"{type(error).__name__}: {error}")
