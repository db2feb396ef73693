"""
Base building blocks:
identity, timestamps and localized display text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from catalogix.domain.model.enums import Locale

if TYPE_CHECKING:
    from collections.abc import Iterator


def new_id() -> UUID:
    return uuid4()


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain."""

    id: UUID = field(default_factory=new_id)


@dataclass(frozen=True, slots=True)
class LocalizedText:
    """Display text per supported locale; blank strings are stored as ``None``."""

    uk: str | None = None
    ru: str | None = None
    en: str | None = None

    def __post_init__(self) -> None:
        for locale in Locale:
            value = getattr(self, locale.value)
            if value is not None and not value.strip():
                object.__setattr__(self, locale.value, None)

    def get(self, locale: Locale) -> str | None:
        return getattr(self, locale.value)

    def items(self) -> Iterator[tuple[Locale, str]]:
        for locale in Locale:
            value = self.get(locale)
            if value is not None:
                yield locale, value

    @property
    def is_empty(self) -> bool:
        return next(self.items(), None) is None

    def best(self, *, order: tuple[Locale, ...] = (Locale.UK, Locale.RU, Locale.EN)) -> str | None:
        for locale in order:
            value = self.get(locale)
            if value is not None:
                return value
        return None

    def fill_from(self, other: LocalizedText) -> LocalizedText:
        """Return a copy keeping own values and taking missing locales from ``other``."""

        return LocalizedText(
            uk=self.uk if self.uk is not None else other.uk,
            ru=self.ru if self.ru is not None else other.ru,
            en=self.en if self.en is not None else other.en,
        )

    def as_dict(self) -> dict[str, str]:
        return {locale.value: value for locale, value in self.items()}

    @classmethod
    def from_dict(cls, payload: dict[str, str | None]) -> LocalizedText:
        return cls(uk=payload.get("uk"), ru=payload.get("ru"), en=payload.get("en"))
