from __future__ import annotations

import threading
import time
from collections import Counter
from typing import TYPE_CHECKING
from uuid import uuid4

from catalogix.domain.recompute import IntentQueue, RecomputeWorkerPool

if TYPE_CHECKING:
    from uuid import UUID


def test_drain_runs_every_entry_once() -> None:
    queue = IntentQueue()
    ids = [uuid4() for _ in range(8)]
    seen: list[UUID] = []
    lock = threading.Lock()

    def run(entry_id: UUID) -> None:
        with lock:
            seen.append(entry_id)

    queue.submit(ids, reason="recompute_all")
    report = RecomputeWorkerPool(queue=queue, run=run, max_workers=3).drain()

    assert sorted(seen) == sorted(ids)
    assert report.completed == 8
    assert report.failed == []
    assert queue.is_idle


def test_transient_failure_is_retried() -> None:
    queue = IntentQueue(max_attempts=3)
    entry_id = uuid4()
    calls: Counter[UUID] = Counter()

    def run(target: UUID) -> None:
        calls[target] += 1
        if calls[target] == 1:
            raise RuntimeError("database is locked")

    queue.submit([entry_id], reason="import")
    report = RecomputeWorkerPool(queue=queue, run=run, max_workers=2).drain()

    assert calls[entry_id] == 2
    assert report.retried == 1
    assert report.completed == 1


def test_exhausted_entry_is_reported_and_others_finish() -> None:
    queue = IntentQueue(max_attempts=2)
    broken = uuid4()
    healthy = uuid4()
    exhausted: list[tuple[UUID, str]] = []

    def run(target: UUID) -> None:
        if target == broken:
            raise ValueError("bad row")

    queue.submit([broken, healthy], reason="import")
    report = RecomputeWorkerPool(
        queue=queue,
        run=run,
        on_exhausted=lambda entry_id, error: exhausted.append((entry_id, error)),
        max_workers=2,
    ).drain()

    assert report.failed == [broken]
    assert report.completed == 1
    assert exhausted == [(broken, "ValueError: bad row")]


def test_resubmission_during_run_never_overlaps() -> None:
    queue = IntentQueue()
    entry_id = uuid4()
    active: Counter[UUID] = Counter()
    overlaps: list[UUID] = []
    runs: list[UUID] = []
    lock = threading.Lock()

    def run(target: UUID) -> None:
        with lock:
            active[target] += 1
            if active[target] > 1:
                overlaps.append(target)
            first_run = not runs
            runs.append(target)
        if first_run:
            queue.submit([target], reason="late write")
            time.sleep(0.05)
        with lock:
            active[target] -= 1

    queue.submit([entry_id], reason="import")
    report = RecomputeWorkerPool(queue=queue, run=run, max_workers=4).drain()

    assert overlaps == []
    assert runs == [entry_id, entry_id]
    assert report.completed == 2
