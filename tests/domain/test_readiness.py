from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

from catalogix.domain.model import Locale, LocalizedText
from catalogix.domain.readiness import ReadinessInput, evaluate_readiness, quality_score


def _state(**overrides: object) -> ReadinessInput:
    values: dict[str, object] = {
        "category_id": uuid4(),
        "min_retail_price": Decimal(100),
        "min_purchase_price": Decimal(70),
        "names": LocalizedText(uk="Дриль"),
        "brand": "Bosch",
        "total_stock": 4,
        "media": ("https://cdn.example/1.jpg",),
        "barcode": "4820000000011",
        "vendor_code": "GSR-120",
    }
    values.update(overrides)
    return ReadinessInput(**values)  # type: ignore[arg-type]


def test_complete_entry_is_ready() -> None:
    verdict = evaluate_readiness(_state())

    assert verdict.is_ready
    assert verdict.warnings == ()
    assert quality_score(verdict) == 100


def test_missing_category_and_purchase_price_block() -> None:
    verdict = evaluate_readiness(_state(category_id=None, min_purchase_price=None))

    assert set(verdict.blocking_codes) == {"no_category", "no_purchase_price"}
    assert verdict.warnings == ()
    assert not verdict.is_ready


def test_warnings_do_not_block() -> None:
    verdict = evaluate_readiness(_state(total_stock=0, media=(), barcode=" ", vendor_code=None))

    assert verdict.is_ready
    assert verdict.warning_codes == ("no_stock", "no_media", "no_barcode", "no_vendor_code")


def test_reasons_carry_both_languages() -> None:
    verdict = evaluate_readiness(_state(brand=None))

    (reason,) = verdict.blocking
    assert reason.code == "no_brand"
    assert reason.message(Locale.UK) == "Відсутній бренд"
    assert reason.message(Locale.RU) == "Отсутствует бренд"
    assert verdict.blocking_text()["uk"] == ["Відсутній бренд"]


def test_quality_score_counts_required_attributes() -> None:
    verdict = evaluate_readiness(_state(category_id=None, min_purchase_price=None))

    assert quality_score(verdict) == 78
    assert quality_score(verdict, [True, False]) == 73
