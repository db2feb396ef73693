from __future__ import annotations

from uuid import uuid4

import pytest

from catalogix.domain.errors import InputValidationError
from catalogix.domain.mapping import AliasIndex, MatchTier, map_raw_attribute, record_unmatched
from catalogix.domain.model import AttributeAlias
from tests.helpers.catalog import make_definition


def _index() -> tuple[AliasIndex, dict[str, object]]:
    weight = make_definition("weight", uk="Вага")
    color = make_definition("color", uk="Колір товару")
    aliases = [AttributeAlias(label="вес", attribute_id=weight.id)]
    return AliasIndex([weight, color], aliases), {"weight": weight.id, "color": color.id}


def test_alias_tier_wins_with_full_confidence() -> None:
    index, ids = _index()

    outcome = map_raw_attribute("Вес, кг", index)

    assert outcome.status == "mapped"
    assert outcome.match is not None
    assert outcome.match.attribute_id == ids["weight"]
    assert outcome.match.tier is MatchTier.ALIAS
    assert outcome.match.confidence == 1.0


@pytest.mark.parametrize(
    ("label", "key", "tier", "confidence"),
    [
        ("WEIGHT", "weight", MatchTier.CODE, 0.95),
        ("Вага (кг)", "weight", MatchTier.NAME, 0.9),
        ("Колір", "color", MatchTier.SUBSTRING, 0.7),
    ],
)
def test_dictionary_tiers(label: str, key: str, tier: MatchTier, confidence: float) -> None:
    index, ids = _index()

    outcome = map_raw_attribute(label, index)

    assert outcome.match is not None
    assert outcome.match.attribute_id == ids[key]
    assert outcome.match.tier is tier
    assert outcome.match.confidence == confidence


def test_short_labels_skip_substring_tier() -> None:
    index, _ = _index()

    outcome = map_raw_attribute("Ко", index)

    assert outcome.status == "unmatched"
    assert outcome.match is None


def test_supplier_alias_shadows_global_alias() -> None:
    weight = make_definition("weight")
    height = make_definition("height")
    supplier_id = uuid4()
    index = AliasIndex(
        [weight, height],
        [
            AttributeAlias(label="h", attribute_id=weight.id),
            AttributeAlias(label="h", attribute_id=height.id, supplier_id=supplier_id),
        ],
    )

    scoped = map_raw_attribute("H", index, supplier_id=supplier_id)
    other = map_raw_attribute("H", index, supplier_id=uuid4())

    assert scoped.match is not None
    assert scoped.match.attribute_id == height.id
    assert other.match is not None
    assert other.match.attribute_id == weight.id


def test_ignored_alias_reports_ignored() -> None:
    index = AliasIndex([], [AttributeAlias(label="артикул постачальника", attribute_id=None)])

    outcome = map_raw_attribute("Артикул постачальника", index)

    assert outcome.status == "ignored"


def test_blank_label_is_rejected() -> None:
    index, _ = _index()

    with pytest.raises(InputValidationError):
        map_raw_attribute(" (кг) ", index)


def test_record_unmatched_keeps_single_item_per_label() -> None:
    supplier_id = uuid4()
    first = record_unmatched(
        None,
        raw_label="Тип патрона ",
        normalized_label="тип патрона",
        supplier_id=supplier_id,
        example="SDS-plus",
    )
    second = record_unmatched(
        first,
        raw_label="Тип патрона",
        normalized_label="тип патрона",
        supplier_id=supplier_id,
        example="SDS-max",
    )

    assert second is first
    assert first.frequency == 2
    assert first.examples == ("SDS-plus", "SDS-max")
    assert first.label == "Тип патрона"
