"""Readiness evaluator: fixed blocking and warning rules plus a quality score."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from catalogix.domain.model import LocalizedText, ReadinessReason, ReadinessVerdict

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from decimal import Decimal
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class ReadinessInput:
    """The resolved state readiness is judged on."""

    category_id: UUID | None
    min_retail_price: Decimal | None
    min_purchase_price: Decimal | None
    names: LocalizedText
    brand: str | None
    total_stock: int
    media: tuple[str, ...]
    barcode: str | None
    vendor_code: str | None


@dataclass(frozen=True, slots=True)
class Rule:
    code: str
    ru: str
    uk: str
    violated: Callable[[ReadinessInput], bool]

    def reason(self) -> ReadinessReason:
        return ReadinessReason(code=self.code, messages=LocalizedText(ru=self.ru, uk=self.uk))


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


BLOCKING_RULES: Final[tuple[Rule, ...]] = (
    Rule(
        "no_category",
        "Не привязана внутренняя категория",
        "Не прив'язана внутрішня категорія",
        lambda state: state.category_id is None,
    ),
    Rule(
        "no_retail_price",
        "Отсутствует розничная цена",
        "Відсутня роздрібна ціна",
        lambda state: state.min_retail_price is None,
    ),
    Rule(
        "no_purchase_price",
        "Отсутствует закупочная цена",
        "Відсутня закупівельна ціна",
        lambda state: state.min_purchase_price is None,
    ),
    Rule(
        "no_name",
        "Отсутствует название товара",
        "Відсутня назва товару",
        lambda state: state.names.is_empty,
    ),
    Rule(
        "no_brand",
        "Отсутствует бренд",
        "Відсутній бренд",
        lambda state: _blank(state.brand),
    ),
)

WARNING_RULES: Final[tuple[Rule, ...]] = (
    Rule("no_stock", "Нет в наличии", "Немає в наявності", lambda state: state.total_stock <= 0),
    Rule("no_media", "Нет изображений", "Немає зображень", lambda state: not state.media),
    Rule("no_barcode", "Отсутствует баркод", "Відсутній баркод", lambda state: _blank(state.barcode)),
    Rule(
        "no_vendor_code",
        "Отсутствует артикул",
        "Відсутній артикул",
        lambda state: _blank(state.vendor_code),
    ),
)


def evaluate_readiness(state: ReadinessInput) -> ReadinessVerdict:
    """Apply every rule; blocking and warning tiers are evaluated independently."""

    return ReadinessVerdict(
        blocking=tuple(rule.reason() for rule in BLOCKING_RULES if rule.violated(state)),
        warnings=tuple(rule.reason() for rule in WARNING_RULES if rule.violated(state)),
    )


def quality_score(verdict: ReadinessVerdict, required_filled: Iterable[bool] = ()) -> int:
    """Percentage of passed checks: every readiness rule plus each required attribute."""

    required = list(required_filled)
    total = len(BLOCKING_RULES) + len(WARNING_RULES) + len(required)
    failed = len(verdict.blocking) + len(verdict.warnings) + required.count(False)
    return round(100 * (total - failed) / total)
