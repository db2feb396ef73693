"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def env_int(name: str, default: int, *, minimum: int | None = None) -> int:
    raw = _optional(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def env_float(name: str, default: float) -> float:
    raw = _optional(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def env_bool(name: str, default: bool) -> bool:  # noqa: FBT001
    raw = _optional(name)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ConfigurationError(f"{name} must be a boolean flag, got {raw!r}")


def env_str(name: str, default: str) -> str:
    return _optional(name) or default


def env_list(name: str, default: Sequence[str]) -> tuple[str, ...]:
    """Parse a comma-separated list; blank items are dropped."""

    raw = _optional(name)
    if raw is None:
        return tuple(default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def env_int_mapping(name: str) -> dict[str, int]:
    """Parse ``key=value`` pairs separated by commas, e.g. ``master=100,acme=60``."""

    raw = _optional(name)
    if raw is None:
        return {}
    mapping: dict[str, int] = {}
    for chunk in raw.split(","):
        if not chunk.strip():
            continue
        key, separator, value = chunk.partition("=")
        if not separator or not key.strip():
            raise ConfigurationError(f"{name} entries must look like key=value, got {chunk!r}")
        try:
            mapping[key.strip()] = int(value)
        except ValueError as exc:
            raise ConfigurationError(f"{name} value for {key.strip()!r} must be an integer") from exc
    return mapping
