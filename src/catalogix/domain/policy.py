"""Tunable reconciliation policy.

Priority constants are deployment-specific business assumptions; the defaults
below mirror the historic setup (master feed 100, manual 90, everyone else 50)
and are overridable through configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogix.domain.model import PreferredSourceRule, PriceClass, PriorityScore

if TYPE_CHECKING:
    from catalogix.domain.model import Supplier

DEFAULT_SUPPLIER_PRIORITY = 50
MANUAL_OVERRIDE_PRIORITY = 90


@dataclass(frozen=True, slots=True)
class ResolutionPolicy:
    default_priority: int = DEFAULT_SUPPLIER_PRIORITY
    manual_priority: int = MANUAL_OVERRIDE_PRIORITY
    supplier_priorities: dict[str, int] = field(default_factory=dict[str, int])
    preferred_source: PreferredSourceRule = field(default_factory=PriorityScore)

    def priority_for(self, supplier: Supplier) -> int:
        if supplier.priority_score is not None:
            return supplier.priority_score
        return self.supplier_priorities.get(supplier.code, self.default_priority)


@dataclass(frozen=True, slots=True)
class PricePolicy:
    """Classifies free-form supplier price tags and fixes the aggregation currency."""

    retail_keywords: tuple[str, ...] = ("retail", "розн", "роздр")
    purchase_keywords: tuple[str, ...] = ("purchase", "закуп")
    currency: str = "UAH"

    def classify(self, price_type: str) -> PriceClass:
        tag = price_type.casefold()
        if any(keyword in tag for keyword in self.retail_keywords):
            return PriceClass.RETAIL
        if any(keyword in tag for keyword in self.purchase_keywords):
            return PriceClass.PURCHASE
        return PriceClass.OTHER


@dataclass(frozen=True, slots=True)
class MatchingPolicy:
    similarity_threshold: float = 85.0
    create_missing_entries: bool = True
    sku_prefix: str = "SKU"


@dataclass(frozen=True, slots=True)
class CatalogPolicy:
    resolution: ResolutionPolicy = field(default_factory=ResolutionPolicy)
    pricing: PricePolicy = field(default_factory=PricePolicy)
    matching: MatchingPolicy = field(default_factory=MatchingPolicy)
