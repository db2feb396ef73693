"""Recompute intents, the per-entry stage pipeline and the worker pool."""

from __future__ import annotations

from .intents import IntentQueue, IntentSink, RecomputeIntent
from .pipeline import (
    AggregationStage,
    ConflictResolutionStage,
    ReadinessStage,
    RecomputeContext,
    RecomputePipeline,
    RecomputeResult,
    RecomputeStage,
)
from .scheduling import mark_pending, record_failure, requeue_stale, schedule_all
from .workers import DrainReport, RecomputeWorkerPool

__all__ = [
    "AggregationStage",
    "ConflictResolutionStage",
    "DrainReport",
    "IntentQueue",
    "IntentSink",
    "ReadinessStage",
    "RecomputeContext",
    "RecomputeIntent",
    "RecomputePipeline",
    "RecomputeResult",
    "RecomputeStage",
    "RecomputeWorkerPool",
    "mark_pending",
    "record_failure",
    "requeue_stale",
    "schedule_all",
]
