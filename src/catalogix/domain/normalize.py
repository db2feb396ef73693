"""Text normalization for supplier labels and typed coercion of raw values."""

from __future__ import annotations

import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Final

from catalogix.domain.errors import ValueCoercionError
from catalogix.domain.model import (
    BooleanValue,
    NumberValue,
    OptionValue,
    TextValue,
    ValueType,
)

if TYPE_CHECKING:
    from catalogix.domain.model import AttributeDefinition, TypedValue

UNIT_TOKENS: Final[frozenset[str]] = frozenset(
    {"кг", "г", "мм", "см", "м", "вт", "а", "в", "bar", "mm", "cm", "kg", "w", "a", "v"}
)

_WHITESPACE = re.compile(r"\s+")
_TRAILING_PARENTHETICAL = re.compile(r"\s*\([^)]*\)\s*$")
_TRAILING_PUNCTUATION = re.compile(r"[\s,.;:/-]+$")
_NUMBER = re.compile(r"^(?P<number>[-+]?\d+(?:[.,]\d+)?)\s*(?P<unit>\S.*)?$")

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "да", "так", "є", "есть"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"0", "false", "no", "n", "нет", "ні", "немає"})


def normalize_text(value: str) -> str:
    """NFKC + casefold + collapsed whitespace."""

    folded = unicodedata.normalize("NFKC", value).casefold()
    return _WHITESPACE.sub(" ", folded).strip()


def normalize_label(label: str) -> str:
    """Normalize a raw supplier attribute label for alias lookup.

    ``"Вага, кг"`` and ``"Вага (кг)"`` both become ``"вага"``. Unit tokens are only
    stripped as whole trailing words, so ``"ширина"`` keeps its final letter.
    """

    text = normalize_text(label)
    text = _TRAILING_PARENTHETICAL.sub("", text)
    text = _TRAILING_PUNCTUATION.sub("", text)
    head, _, last = text.rpartition(" ")
    if head and last in UNIT_TOKENS:
        text = head
    return _TRAILING_PUNCTUATION.sub("", text).strip()


def coerce_value(raw: str, definition: AttributeDefinition) -> TypedValue:
    """Read ``raw`` as the definition's declared type or raise ``ValueCoercionError``."""

    text = _WHITESPACE.sub(" ", raw).strip()
    if not text:
        raise ValueCoercionError("empty value")

    if definition.value_type is ValueType.NUMBER:
        return _coerce_number(text, default_unit=definition.default_unit)
    if definition.value_type is ValueType.BOOLEAN:
        return _coerce_boolean(text)
    if definition.value_type is ValueType.ENUMERATED:
        return _coerce_option(text, definition.options)
    return TextValue(text=normalize_text(text))


def _coerce_number(text: str, *, default_unit: str | None) -> NumberValue:
    match = _NUMBER.match(text)
    if match is None:
        raise ValueCoercionError(f"not a number: {text!r}")
    try:
        amount = Decimal(match.group("number").replace(",", "."))
    except InvalidOperation as exc:
        raise ValueCoercionError(f"not a number: {text!r}") from exc
    unit = match.group("unit")
    normalized_unit = normalize_text(unit).rstrip(".") if unit else default_unit
    return NumberValue(amount=amount.normalize(), unit=normalized_unit or None)


def _coerce_boolean(text: str) -> BooleanValue:
    folded = normalize_text(text)
    if folded in _TRUE_WORDS:
        return BooleanValue(flag=True)
    if folded in _FALSE_WORDS:
        return BooleanValue(flag=False)
    raise ValueCoercionError(f"not a boolean: {text!r}")


def _coerce_option(text: str, options: tuple[str, ...]) -> OptionValue:
    folded = normalize_text(text)
    if not options:
        return OptionValue(option=folded)
    for option in options:
        if normalize_text(option) == folded:
            return OptionValue(option=option)
    raise ValueCoercionError(f"{text!r} is not one of {', '.join(options)}")
