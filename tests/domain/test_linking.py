from __future__ import annotations

from uuid import uuid4

import pytest

from catalogix.domain.errors import LinkConflictError
from catalogix.domain.linking import (
    MatchCandidate,
    assign_primary,
    ensure_unlinked,
    propose_link,
)
from catalogix.domain.model import EntityLink, LinkType, LocalizedText, SupplierEntity


def _entity(**kwargs: object) -> SupplierEntity:
    return SupplierEntity(supplier_id=uuid4(), external_id="A-1", **kwargs)  # type: ignore[arg-type]


def test_unique_barcode_links_with_primary_code_confidence() -> None:
    target = MatchCandidate(entry_id=uuid4(), barcodes=("4820000000011",))
    other = MatchCandidate(entry_id=uuid4(), barcodes=("4820000000028",))

    proposal = propose_link(
        _entity(barcode=" 4820000000011 "),
        [other, target],
        similarity_threshold=85.0,
    )

    assert proposal is not None
    assert proposal.catalog_entry_id == target.entry_id
    assert proposal.link_type is LinkType.AUTO_PRIMARY_CODE
    assert proposal.confidence == 0.95
    assert proposal.needs_review is False


def test_ambiguous_barcode_falls_through_to_vendor_code() -> None:
    first = MatchCandidate(entry_id=uuid4(), barcodes=("111",), vendor_codes=("GSR-120",))
    second = MatchCandidate(entry_id=uuid4(), barcodes=("111",), vendor_codes=("GSR-180",))

    proposal = propose_link(
        _entity(barcode="111", vendor_code="GSR-180"),
        [first, second],
        similarity_threshold=85.0,
    )

    assert proposal is not None
    assert proposal.catalog_entry_id == second.entry_id
    assert proposal.link_type is LinkType.AUTO_SECONDARY_CODE
    assert proposal.confidence == 0.90


def test_brand_similarity_links_for_review() -> None:
    candidate = MatchCandidate(entry_id=uuid4(), brands=("Bosch",), name="Дриль Bosch GSR 120-LI")

    proposal = propose_link(
        _entity(brand="BOSCH", names=LocalizedText(uk="Bosch GSR 120-LI дриль")),
        [candidate],
        similarity_threshold=85.0,
    )

    assert proposal is not None
    assert proposal.link_type is LinkType.AUTO_SIMILARITY
    assert proposal.needs_review is True
    assert proposal.confidence == 1.0


def test_similarity_below_threshold_creates_no_link() -> None:
    candidate = MatchCandidate(entry_id=uuid4(), brands=("Bosch",), name="Перфоратор GBH 2-26")

    proposal = propose_link(
        _entity(brand="Bosch", names=LocalizedText(uk="Шуруповерт GSR 120-LI")),
        [candidate],
        similarity_threshold=85.0,
    )

    assert proposal is None


def test_similarity_requires_same_brand() -> None:
    candidate = MatchCandidate(entry_id=uuid4(), brands=("Makita",), name="Дриль GSR 120-LI")

    assert (
        propose_link(
            _entity(brand="Bosch", names=LocalizedText(uk="Дриль GSR 120-LI")),
            [candidate],
            similarity_threshold=85.0,
        )
        is None
    )
    assert propose_link(_entity(), [candidate], similarity_threshold=0.0) is None


def test_assign_primary_leaves_exactly_one_primary() -> None:
    entry_id = uuid4()
    links = [
        EntityLink(catalog_entry_id=entry_id, supplier_entity_id=uuid4(), is_primary=True),
        EntityLink(catalog_entry_id=entry_id, supplier_entity_id=uuid4()),
        EntityLink(catalog_entry_id=entry_id, supplier_entity_id=uuid4()),
    ]

    changed = assign_primary(links, links[2])

    assert [link.is_primary for link in links] == [False, False, True]
    assert set(map(id, changed)) == {id(links[0]), id(links[2])}


def test_ensure_unlinked_rejects_second_link() -> None:
    existing = EntityLink(catalog_entry_id=uuid4(), supplier_entity_id=uuid4())

    with pytest.raises(LinkConflictError) as excinfo:
        ensure_unlinked(existing.supplier_entity_id, existing)

    assert excinfo.value.catalog_entry_id == existing.catalog_entry_id
    ensure_unlinked(uuid4(), None)
