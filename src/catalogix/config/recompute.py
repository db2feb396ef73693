"""Recompute worker pool settings."""

from __future__ import annotations

from dataclasses import dataclass

from catalogix.domain.recompute.intents import DEFAULT_MAX_ATTEMPTS
from catalogix.domain.recompute.workers import DEFAULT_MAX_WORKERS

from .env import env_int


@dataclass(frozen=True, slots=True)
class RecomputeConfig:
    max_workers: int = DEFAULT_MAX_WORKERS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS


def get_recompute_config() -> RecomputeConfig:
    return RecomputeConfig(
        max_workers=env_int("CATALOGIX_RECOMPUTE_WORKERS", DEFAULT_MAX_WORKERS, minimum=1),
        max_attempts=env_int("CATALOGIX_RECOMPUTE_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS, minimum=1),
    )
