"""Catalog entries ("internal SKUs") and their published derived state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogix.domain.errors import InputValidationError
from catalogix.domain.model.entity import Entity, LocalizedText, utcnow
from catalogix.domain.model.enums import Locale, RecomputeStatus

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class ReadinessReason:
    code: str
    messages: LocalizedText

    def message(self, locale: Locale) -> str:
        return self.messages.get(locale) or self.code


@dataclass(frozen=True, slots=True)
class ReadinessVerdict:
    blocking: tuple[ReadinessReason, ...] = ()
    warnings: tuple[ReadinessReason, ...] = ()

    @property
    def is_ready(self) -> bool:
        return not self.blocking

    @property
    def blocking_codes(self) -> tuple[str, ...]:
        return tuple(reason.code for reason in self.blocking)

    @property
    def warning_codes(self) -> tuple[str, ...]:
        return tuple(reason.code for reason in self.warnings)

    def blocking_text(self) -> dict[str, list[str]]:
        return _texts(self.blocking)

    def warning_text(self) -> dict[str, list[str]]:
        return _texts(self.warnings)


def _texts(reasons: tuple[ReadinessReason, ...]) -> dict[str, list[str]]:
    return {
        locale.value: [reason.message(locale) for reason in reasons]
        for locale in (Locale.RU, Locale.UK)
    }


@dataclass(frozen=True, slots=True)
class EntrySnapshot:
    """Every derived field of a catalog entry, published as one unit."""

    display_names: LocalizedText = field(default_factory=LocalizedText)
    category_id: UUID | None = None
    brand: str | None = None
    barcode: str | None = None
    vendor_code: str | None = None
    media: tuple[str, ...] = ()
    total_stock: int = 0
    min_retail_price: Decimal | None = None
    max_retail_price: Decimal | None = None
    min_purchase_price: Decimal | None = None
    preferred_supplier_id: UUID | None = None
    verdict: ReadinessVerdict | None = None
    quality_score: int = 0


@dataclass(eq=False, kw_only=True)
class CatalogEntry(Entity):
    """The unified product record exposed externally.

    ``names``, ``category_id``, ``brand``, ``barcode`` and ``vendor_code`` hold
    operator input and take precedence over supplier data. Every other field is
    derived and only ever written through ``publish``.
    """

    sku: str
    names: LocalizedText = field(default_factory=LocalizedText)
    category_id: UUID | None = None
    brand: str | None = None
    barcode: str | None = None
    vendor_code: str | None = None

    display_names: LocalizedText = field(default_factory=LocalizedText)
    resolved_category_id: UUID | None = None
    resolved_brand: str | None = None
    resolved_barcode: str | None = None
    resolved_vendor_code: str | None = None
    media: tuple[str, ...] = ()
    total_stock: int = 0
    min_retail_price: Decimal | None = None
    max_retail_price: Decimal | None = None
    min_purchase_price: Decimal | None = None
    preferred_supplier_id: UUID | None = None
    verdict: ReadinessVerdict | None = None
    quality_score: int = 0

    recompute_status: RecomputeStatus = RecomputeStatus.PENDING
    recompute_error: str | None = None
    generation: int = 0
    computed_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.sku = self.sku.strip()
        if not self.sku:
            raise InputValidationError("catalog entry sku must not be blank")

    @property
    def is_ready(self) -> bool:
        return self.verdict is not None and self.verdict.is_ready

    @property
    def is_stale(self) -> bool:
        return self.recompute_status is not RecomputeStatus.FRESH

    @property
    def snapshot(self) -> EntrySnapshot:
        return EntrySnapshot(
            display_names=self.display_names,
            category_id=self.resolved_category_id,
            brand=self.resolved_brand,
            barcode=self.resolved_barcode,
            vendor_code=self.resolved_vendor_code,
            media=self.media,
            total_stock=self.total_stock,
            min_retail_price=self.min_retail_price,
            max_retail_price=self.max_retail_price,
            min_purchase_price=self.min_purchase_price,
            preferred_supplier_id=self.preferred_supplier_id,
            verdict=self.verdict,
            quality_score=self.quality_score,
        )

    def publish(self, snapshot: EntrySnapshot, *, computed_at: datetime) -> bool:
        """Store ``snapshot``; return whether anything changed.

        The staleness status is left alone. Only ``mark_fresh`` clears it, once the
        caller knows no write landed since the recompute read its inputs.
        """

        changed = snapshot != self.snapshot
        if changed:
            self.display_names = snapshot.display_names
            self.resolved_category_id = snapshot.category_id
            self.resolved_brand = snapshot.brand
            self.resolved_barcode = snapshot.barcode
            self.resolved_vendor_code = snapshot.vendor_code
            self.media = snapshot.media
            self.total_stock = snapshot.total_stock
            self.min_retail_price = snapshot.min_retail_price
            self.max_retail_price = snapshot.max_retail_price
            self.min_purchase_price = snapshot.min_purchase_price
            self.preferred_supplier_id = snapshot.preferred_supplier_id
            self.verdict = snapshot.verdict
            self.quality_score = snapshot.quality_score
            self.computed_at = computed_at
        elif self.computed_at is None:
            self.computed_at = computed_at
        return changed

    def mark_fresh(self) -> None:
        self.recompute_status = RecomputeStatus.FRESH
        self.recompute_error = None

    def mark_pending(self) -> None:
        self.recompute_status = RecomputeStatus.PENDING
        self.generation += 1

    def mark_failed(self, error: str) -> None:
        self.recompute_status = RecomputeStatus.FAILED
        self.recompute_error = error
