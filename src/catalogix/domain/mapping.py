"""Alias index lookup and intake-queue bookkeeping for raw supplier labels.

``map_raw_attribute`` tries four tiers in order and stops at the first hit:

=========  ==========  ==============================================
tier       confidence  rule
=========  ==========  ==============================================
alias      1.0         alias entry (supplier-scoped first, then global)
code       0.95        label equals the definition code
name       0.9         label equals a normalized display name
substring  0.7         label contained in a normalized display name
=========  ==========  ==============================================

Labels with no hit belong in the inbox.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Literal

from catalogix.domain.errors import InputValidationError
from catalogix.domain.model import InboxItem
from catalogix.domain.normalize import normalize_label, normalize_text

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from catalogix.domain.model import AttributeAlias, AttributeDefinition

MIN_SUBSTRING_LENGTH: Final[int] = 3


class MatchTier(StrEnum):
    ALIAS = "alias"
    CODE = "code"
    NAME = "name"
    SUBSTRING = "substring"


TIER_CONFIDENCE: Final[dict[MatchTier, float]] = {
    MatchTier.ALIAS: 1.0,
    MatchTier.CODE: 0.95,
    MatchTier.NAME: 0.9,
    MatchTier.SUBSTRING: 0.7,
}

type MappingStatus = Literal["mapped", "ignored", "unmatched"]


@dataclass(frozen=True, slots=True)
class AttributeMatch:
    attribute_id: UUID
    tier: MatchTier

    @property
    def confidence(self) -> float:
        return TIER_CONFIDENCE[self.tier]


@dataclass(frozen=True, slots=True)
class MappingOutcome:
    label: str
    status: MappingStatus
    match: AttributeMatch | None = None


@dataclass(frozen=True, slots=True)
class _DefinitionKeys:
    attribute_id: UUID
    code: str
    names: tuple[str, ...]
    haystacks: tuple[str, ...]


class AliasIndex:
    """Read-only lookup structure over the dictionary and its aliases."""

    def __init__(
        self,
        definitions: Iterable[AttributeDefinition],
        aliases: Iterable[AttributeAlias] = (),
    ) -> None:
        self._aliases: dict[tuple[str, UUID | None], AttributeAlias] = {
            (alias.label, alias.supplier_id): alias for alias in aliases
        }
        self._definitions = tuple(
            _DefinitionKeys(
                attribute_id=definition.id,
                code=normalize_text(definition.code),
                names=tuple(normalize_label(name) for _, name in definition.names.items()),
                haystacks=tuple(normalize_text(name) for _, name in definition.names.items()),
            )
            for definition in sorted(definitions, key=lambda item: item.key)
        )

    def add_alias(self, alias: AttributeAlias) -> None:
        self._aliases[(alias.label, alias.supplier_id)] = alias

    def lookup(self, label: str, supplier_id: UUID | None = None) -> MappingOutcome:
        """Look up an already-normalized ``label``."""

        alias = self._aliases.get((label, supplier_id)) if supplier_id is not None else None
        alias = alias or self._aliases.get((label, None))
        if alias is not None:
            if alias.attribute_id is None:
                return MappingOutcome(label=label, status="ignored")
            return MappingOutcome(
                label=label,
                status="mapped",
                match=AttributeMatch(attribute_id=alias.attribute_id, tier=MatchTier.ALIAS),
            )

        match = self.match_dictionary(label)
        if match is None:
            return MappingOutcome(label=label, status="unmatched")
        return MappingOutcome(label=label, status="mapped", match=match)

    def match_dictionary(self, label: str) -> AttributeMatch | None:
        """Run the code, name and substring tiers (no aliases)."""

        for keys in self._definitions:
            if keys.code == label:
                return AttributeMatch(attribute_id=keys.attribute_id, tier=MatchTier.CODE)
        for keys in self._definitions:
            if label in keys.names:
                return AttributeMatch(attribute_id=keys.attribute_id, tier=MatchTier.NAME)
        if len(label) < MIN_SUBSTRING_LENGTH:
            return None
        for keys in self._definitions:
            if any(label in haystack for haystack in keys.haystacks):
                return AttributeMatch(attribute_id=keys.attribute_id, tier=MatchTier.SUBSTRING)
        return None


def map_raw_attribute(
    raw_label: str,
    index: AliasIndex,
    *,
    supplier_id: UUID | None = None,
) -> MappingOutcome:
    """Normalize ``raw_label`` and resolve it against ``index``."""

    label = normalize_label(raw_label)
    if not label:
        raise InputValidationError(f"attribute label {raw_label!r} is blank after normalization")
    return index.lookup(label, supplier_id)


def record_unmatched(
    existing: InboxItem | None,
    *,
    raw_label: str,
    normalized_label: str,
    supplier_id: UUID | None,
    example: str | None,
) -> InboxItem:
    """Create or bump the single open inbox item for an unmatched label."""

    item = existing or InboxItem(
        label=raw_label.strip(),
        normalized_label=normalized_label,
        supplier_id=supplier_id,
    )
    item.record_occurrence(example)
    return item
