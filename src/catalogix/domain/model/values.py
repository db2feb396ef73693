"""Typed attribute values.

Normalized values form a tagged union keyed by the owning definition's
``ValueType``. Equality between two values is what the conflict resolver uses
to count distinct candidates.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar

from catalogix.domain.model.enums import ValueType


@dataclass(frozen=True, slots=True)
class TextValue:
    kind: ClassVar[ValueType] = ValueType.TEXT

    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class NumberValue:
    kind: ClassVar[ValueType] = ValueType.NUMBER

    amount: Decimal
    unit: str | None = None

    def render(self) -> str:
        rendered = format(self.amount, "f")
        return f"{rendered} {self.unit}" if self.unit else rendered


@dataclass(frozen=True, slots=True)
class BooleanValue:
    kind: ClassVar[ValueType] = ValueType.BOOLEAN

    flag: bool

    def render(self) -> str:
        return "true" if self.flag else "false"


@dataclass(frozen=True, slots=True)
class OptionValue:
    kind: ClassVar[ValueType] = ValueType.ENUMERATED

    option: str

    def render(self) -> str:
        return self.option


type TypedValue = TextValue | NumberValue | BooleanValue | OptionValue


def value_to_payload(value: TypedValue) -> dict[str, Any]:
    if isinstance(value, TextValue):
        return {"kind": value.kind.value, "text": value.text}
    if isinstance(value, NumberValue):
        return {"kind": value.kind.value, "amount": format(value.amount, "f"), "unit": value.unit}
    if isinstance(value, BooleanValue):
        return {"kind": value.kind.value, "flag": value.flag}
    return {"kind": value.kind.value, "option": value.option}


def value_from_payload(payload: dict[str, Any]) -> TypedValue:
    kind = ValueType(payload["kind"])
    if kind is ValueType.TEXT:
        return TextValue(text=str(payload["text"]))
    if kind is ValueType.NUMBER:
        unit = payload.get("unit")
        return NumberValue(amount=Decimal(str(payload["amount"])), unit=unit)
    if kind is ValueType.BOOLEAN:
        return BooleanValue(flag=bool(payload["flag"]))
    return OptionValue(option=str(payload["option"]))
