"""Typed cell values and free-text coercion.

A value is a small tagged union: string, number, bool, null, or a choice
marker for a value bound to a fixed domain with nothing selected yet.

Coercion only ever applies to values. Keys are always plain strings.
Numeric text must parse in full: ``"42abc"`` stays a string, and so does
text whose magnitude overflows a double (``"1" * 400``). There is one
number type as far as snapshots go: integral results such as ``"1.0"`` or
``"1e3"`` are stored as ``int`` so they print as ``1`` and ``1000``.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

JsonScalar = str | int | float | bool | None

# Whole-string numeric literal. Hex, underscores, padding and inf/nan stay text.
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

# Largest integer a double holds exactly; integral floats up to it print as ints.
_MAX_SAFE_INT = 2**53


class ValueKind(StrEnum):
    """Variant tags for :class:`Value`."""

    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    NULL = "null"
    CHOICE = "choice"


@dataclass(frozen=True)
class Value:
    """A typed cell value. Equality is kind-and-content equality.

    For ``CHOICE`` the payload is the domain key the value is bound to.
    """

    kind: ValueKind
    data: JsonScalar = None

    @classmethod
    def string(cls, text: str) -> Value:
        return cls(ValueKind.STRING, text)

    @classmethod
    def number(cls, number: int | float) -> Value:
        return cls(ValueKind.NUMBER, number)

    @classmethod
    def boolean(cls, flag: bool) -> Value:
        return cls(ValueKind.BOOL, bool(flag))

    @classmethod
    def choice(cls, domain_key: str) -> Value:
        return cls(ValueKind.CHOICE, domain_key)

    @property
    def is_empty(self) -> bool:
        """Null, an unselected choice, and the empty string count as empty."""
        if self.kind in (ValueKind.NULL, ValueKind.CHOICE):
            return True
        return self.kind is ValueKind.STRING and self.data == ""

    def to_json(self) -> JsonScalar:
        """Return the JSON-compatible scalar used in snapshots."""
        if self.kind in (ValueKind.NULL, ValueKind.CHOICE):
            return None
        return self.data


NULL = Value(ValueKind.NULL)


def _parse_number(text: str) -> int | float | None:
    if not _NUMBER_RE.match(text):
        return None
    try:
        number = float(text)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    if not any(ch in text for ch in ".eE"):
        return int(text)
    if number.is_integer() and abs(number) <= _MAX_SAFE_INT:
        return int(number)
    return number


def from_raw(obj: Any) -> Value:
    """Wrap a JSON primitive without any string coercion."""
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return NULL
    if isinstance(obj, bool):
        return Value.boolean(obj)
    if isinstance(obj, (int, float)):
        return Value.number(obj)
    if isinstance(obj, str):
        return Value.string(obj)
    return Value.string(json.dumps(obj, default=str))


def to_typed(raw: Any) -> Value:
    """Infer a typed value from free text.

    ``"true"``/``"false"`` become booleans, ``None`` becomes null, a string
    that parses completely as a finite number becomes a number, and
    everything else stays a string. Non-string input is wrapped as-is.
    """
    if not isinstance(raw, str):
        return from_raw(raw)
    if raw == "true":
        return Value.boolean(True)
    if raw == "false":
        return Value.boolean(False)
    number = _parse_number(raw)
    if number is not None:
        return Value.number(number)
    return Value.string(raw)


def from_typed(value: Value) -> str:
    """Render a value as the text shown in an editable field."""
    if value.kind is ValueKind.BOOL:
        return "true" if value.data else "false"
    if value.kind in (ValueKind.NULL, ValueKind.CHOICE):
        return ""
    return str(value.data)


def coerce(raw: Any, *, infer: bool) -> Value:
    """Apply type inference to *raw* when *infer* is set, else wrap it."""
    return to_typed(raw) if infer else from_raw(raw)
