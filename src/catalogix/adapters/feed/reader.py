"""Read supplier feeds stored as JSON lines."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import ValidationError

from .schema import FEED_LINE_MODELS, ProductLine
from .translator import to_price_upserts, to_supplier_entity

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from catalogix.domain.data_integration import PriceUpsert, SupplierEntityUpsert

log = logging.getLogger(__name__)


@dataclass(slots=True)
class FeedBatch:
    entities: list[SupplierEntityUpsert] = field(default_factory=list["SupplierEntityUpsert"])
    prices: list[PriceUpsert] = field(default_factory=list["PriceUpsert"])
    errors: list[tuple[int, str]] = field(default_factory=list[tuple[int, str]])


def _describe(error: ValidationError) -> str:
    parts: list[str] = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "line"
        parts.append(f"{location}: {detail['msg']}")
    return "; ".join(parts)


def read_feed(lines: Iterable[str]) -> FeedBatch:
    """Parse feed lines; malformed lines are reported by line number and skipped."""

    batch = FeedBatch()
    for number, raw in enumerate(lines, start=1):
        text = raw.strip()
        if not text or text.startswith("#"):
            continue
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            batch.errors.append((number, f"invalid JSON: {exc.msg}"))
            continue
        if not isinstance(payload, dict):
            batch.errors.append((number, "expected a JSON object"))
            continue

        kind = payload.get("kind", "product")
        model = FEED_LINE_MODELS.get(kind) if isinstance(kind, str) else None
        if model is None:
            batch.errors.append((number, f"unknown record kind {kind!r}"))
            continue
        try:
            line = model.model_validate(payload)
        except ValidationError as exc:
            batch.errors.append((number, _describe(exc)))
            continue

        if isinstance(line, ProductLine):
            batch.entities.append(to_supplier_entity(line))
        batch.prices.extend(to_price_upserts(line))

    if batch.errors:
        log.warning("Skipped %s malformed feed line(s)", len(batch.errors))
    return batch


def load_feed(path: Path) -> FeedBatch:
    with path.open(encoding="utf-8") as handle:
        return read_feed(handle)
