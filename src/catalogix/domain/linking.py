"""Entity link graph rules and automatic matching strategies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from rapidfuzz import fuzz

from catalogix.domain.errors import LinkConflictError
from catalogix.domain.model import LinkType
from catalogix.domain.normalize import normalize_text

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from catalogix.domain.model import EntityLink, SupplierEntity

log = logging.getLogger(__name__)

PRIMARY_CODE_CONFIDENCE: Final[float] = 0.95
SECONDARY_CODE_CONFIDENCE: Final[float] = 0.90
NAME_WEIGHT: Final[float] = 0.7
ATTRIBUTE_WEIGHT: Final[float] = 0.3

type Fingerprint = frozenset[tuple[UUID, str]]


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    """What auto-matching needs to know about an existing catalog entry.

    Codes and brands are collected from the entry itself and from every supplier
    entity already linked to it, so an entry is matchable before its first recompute.
    """

    entry_id: UUID
    barcodes: tuple[str, ...] = ()
    vendor_codes: tuple[str, ...] = ()
    brands: tuple[str, ...] = ()
    name: str | None = None
    attributes: Fingerprint = frozenset()


@dataclass(frozen=True, slots=True)
class LinkProposal:
    catalog_entry_id: UUID
    link_type: LinkType
    confidence: float
    needs_review: bool
    reason: str


def ensure_unlinked(supplier_entity_id: UUID, existing: EntityLink | None) -> None:
    """Reject linking a supplier entity that already has a link."""

    if existing is not None:
        raise LinkConflictError(supplier_entity_id, existing.catalog_entry_id)


def assign_primary(links: Iterable[EntityLink], primary: EntityLink) -> list[EntityLink]:
    """Make ``primary`` the only primary link; return links whose flag changed."""

    changed: list[EntityLink] = []
    for link in links:
        should_be_primary = link is primary
        if link.is_primary != should_be_primary:
            link.is_primary = should_be_primary
            changed.append(link)
    return changed


def _clean_code(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _unique_code_match(
    code: str | None,
    candidates: Sequence[MatchCandidate],
    attr: str,
) -> MatchCandidate | None:
    code = _clean_code(code)
    if code is None:
        return None
    hits = [
        candidate
        for candidate in candidates
        if code in {_clean_code(value) for value in getattr(candidate, attr)}
    ]
    if len(hits) > 1:
        log.info(
            "Ambiguous %s %s matches %d catalog entries; skipping",
            attr.removesuffix("s"),
            code,
            len(hits),
        )
        return None
    return hits[0] if hits else None


def similarity_score(
    entity_name: str | None,
    entity_attributes: Fingerprint,
    candidate: MatchCandidate,
) -> float:
    """Score 0..100 combining name similarity with attribute overlap."""

    if not entity_name or not candidate.name:
        return 0.0
    name_score = fuzz.token_sort_ratio(normalize_text(entity_name), normalize_text(candidate.name))
    if not entity_attributes or not candidate.attributes:
        return float(name_score)
    shared = len(entity_attributes & candidate.attributes)
    overlap = 100.0 * shared / len(entity_attributes | candidate.attributes)
    return NAME_WEIGHT * name_score + ATTRIBUTE_WEIGHT * overlap


def propose_link(
    entity: SupplierEntity,
    candidates: Sequence[MatchCandidate],
    *,
    entity_attributes: Fingerprint = frozenset(),
    similarity_threshold: float,
) -> LinkProposal | None:
    """Try primary code, secondary code, then brand+similarity; first hit wins."""

    by_barcode = _unique_code_match(entity.barcode, candidates, "barcodes")
    if by_barcode is not None:
        return LinkProposal(
            catalog_entry_id=by_barcode.entry_id,
            link_type=LinkType.AUTO_PRIMARY_CODE,
            confidence=PRIMARY_CODE_CONFIDENCE,
            needs_review=False,
            reason=f"barcode {entity.barcode}",
        )

    by_vendor_code = _unique_code_match(entity.vendor_code, candidates, "vendor_codes")
    if by_vendor_code is not None:
        return LinkProposal(
            catalog_entry_id=by_vendor_code.entry_id,
            link_type=LinkType.AUTO_SECONDARY_CODE,
            confidence=SECONDARY_CODE_CONFIDENCE,
            needs_review=False,
            reason=f"vendor code {entity.vendor_code}",
        )

    brand = normalize_text(entity.brand) if entity.brand else None
    if brand is None:
        return None
    scored = sorted(
        (
            (similarity_score(entity.display_name, entity_attributes, candidate), candidate)
            for candidate in candidates
            if brand in {normalize_text(value) for value in candidate.brands}
        ),
        key=lambda pair: (-pair[0], str(pair[1].entry_id)),
    )
    if not scored or scored[0][0] < similarity_threshold:
        return None
    best_score, best = scored[0]
    if len(scored) > 1 and scored[1][0] == best_score:
        log.info("Similarity tie for supplier entity %s; skipping", entity.id)
        return None
    return LinkProposal(
        catalog_entry_id=best.entry_id,
        link_type=LinkType.AUTO_SIMILARITY,
        confidence=round(best_score / 100.0, 4),
        needs_review=True,
        reason=f"brand {entity.brand} similarity {best_score:.1f}",
    )
