"""Per-entry recompute intents and the queue that serialises them.

Invariants kept by ``IntentQueue``:

- an entry id is pending at most once (duplicate submissions coalesce)
- an entry id is in flight at most once (single writer per entry)
- a submission for an in-flight entry is parked and re-queued on completion
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

log = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class RecomputeIntent:
    entry_id: UUID
    reason: str
    attempt: int = 1


class IntentSink(Protocol):
    """Anything that accepts recompute intents after a committed write."""

    def submit(self, entry_ids: Iterable[UUID], *, reason: str) -> None: ...


class IntentQueue:
    """Thread-safe, inspectable queue of recompute intents."""

    def __init__(self, *, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self._lock = threading.Lock()
        self._pending: OrderedDict[UUID, RecomputeIntent] = OrderedDict()
        self._in_flight: dict[UUID, RecomputeIntent] = {}
        self._parked: dict[UUID, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending) + len(self._parked)

    def submit(self, entry_ids: Iterable[UUID], *, reason: str) -> None:
        with self._lock:
            for entry_id in entry_ids:
                if entry_id in self._in_flight:
                    self._parked.setdefault(entry_id, reason)
                elif entry_id not in self._pending:
                    self._pending[entry_id] = RecomputeIntent(entry_id=entry_id, reason=reason)

    def claim(self, limit: int) -> list[RecomputeIntent]:
        """Move up to ``limit`` pending intents to in-flight, oldest first."""

        claimed: list[RecomputeIntent] = []
        with self._lock:
            while self._pending and len(claimed) < limit:
                _, intent = self._pending.popitem(last=False)
                self._in_flight[intent.entry_id] = intent
                claimed.append(intent)
        return claimed

    def complete(self, intent: RecomputeIntent) -> None:
        with self._lock:
            self._release(intent)

    def fail(self, intent: RecomputeIntent) -> bool:
        """Re-queue a failed intent; return ``False`` once attempts are exhausted."""

        with self._lock:
            if intent.attempt < self.max_attempts:
                self._in_flight.pop(intent.entry_id, None)
                retry = replace(intent, attempt=intent.attempt + 1)
                self._pending[intent.entry_id] = retry
                self._parked.pop(intent.entry_id, None)
                log.warning(
                    "Retrying recompute of %s (attempt %d/%d)",
                    intent.entry_id,
                    retry.attempt,
                    self.max_attempts,
                )
                return True
            self._release(intent)
            return False

    def _release(self, intent: RecomputeIntent) -> None:
        self._in_flight.pop(intent.entry_id, None)
        parked_reason = self._parked.pop(intent.entry_id, None)
        if parked_reason is not None and intent.entry_id not in self._pending:
            self._pending[intent.entry_id] = RecomputeIntent(
                entry_id=intent.entry_id,
                reason=parked_reason,
            )

    def pending_ids(self) -> tuple[UUID, ...]:
        with self._lock:
            return (*self._pending, *(key for key in self._parked if key not in self._pending))

    def in_flight_ids(self) -> tuple[UUID, ...]:
        with self._lock:
            return tuple(self._in_flight)

    @property
    def is_idle(self) -> bool:
        with self._lock:
            return not (self._pending or self._in_flight or self._parked)
