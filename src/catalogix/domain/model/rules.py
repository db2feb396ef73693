"""Preferred-source rules used to rank conflicting attribute values."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from catalogix.domain.errors import InputValidationError


@dataclass(frozen=True, slots=True)
class FixedSupplier:
    """Values from one supplier outrank everything else."""

    supplier_id: UUID


@dataclass(frozen=True, slots=True)
class MostRecent:
    """The most recently observed value wins."""


@dataclass(frozen=True, slots=True)
class Oldest:
    """The earliest observed value wins."""


@dataclass(frozen=True, slots=True)
class PriorityScore:
    """Only the source priority score decides."""


type PreferredSourceRule = FixedSupplier | MostRecent | Oldest | PriorityScore

_SUPPLIER_PREFIX = "supplier:"


def format_rule(rule: PreferredSourceRule) -> str:
    if isinstance(rule, FixedSupplier):
        return f"{_SUPPLIER_PREFIX}{rule.supplier_id}"
    if isinstance(rule, MostRecent):
        return "most_recent"
    if isinstance(rule, Oldest):
        return "oldest"
    return "priority"


def parse_rule(text: str) -> PreferredSourceRule:
    """Parse the textual form produced by ``format_rule``."""

    normalized = text.strip().lower()
    if normalized == "priority":
        return PriorityScore()
    if normalized == "most_recent":
        return MostRecent()
    if normalized == "oldest":
        return Oldest()
    if normalized.startswith(_SUPPLIER_PREFIX):
        raw_id = normalized.removeprefix(_SUPPLIER_PREFIX)
        try:
            return FixedSupplier(supplier_id=UUID(raw_id))
        except ValueError as exc:
            raise InputValidationError(f"invalid supplier id in rule: {text!r}") from exc
    raise InputValidationError(f"unknown preferred-source rule: {text!r}")
