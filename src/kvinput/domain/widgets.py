"""Field descriptors for the rendering layer.

The model never renders. It tells a renderer which kind of field each
row needs and what it shows, and maps choice selections back to values.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from kvinput.domain.rows import Row, RowField
from kvinput.domain.values import NULL, Value, ValueKind, from_raw, from_typed

EMPTY_OPTION = ""


class FieldKind(StrEnum):
    """Widget kinds a renderer has to provide."""

    TEXT = "text"
    CHECKBOX = "checkbox"
    CHOICE = "choice"


@dataclass(frozen=True)
class WidgetDescriptor:
    """What to render for one field of one row.

    ``value`` is the display text, or a bool for checkboxes. For choice
    fields ``options`` starts with the empty option.
    """

    row_id: int
    field: RowField
    kind: FieldKind
    value: str | bool
    options: tuple[str, ...] = ()
    invalid: bool = False

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "field": str(self.field),
            "kind": str(self.kind),
            "value": self.value,
        }
        if self.options:
            data["options"] = list(self.options)
        if self.invalid:
            data["invalid"] = True
        return data


def bound_domain(
    row: Row,
    domain: dict[str, list[Value]],
    *,
    use_types: bool,
) -> list[Value] | None:
    """Return the choice domain the row's value is bound to, if any."""
    if not use_types or row.free_text:
        return None
    options = domain.get(row.key)
    return options or None


def describe_key(row: Row, allowed_keys: Sequence[str] | None) -> WidgetDescriptor:
    if allowed_keys:
        shown = row.key if row.key in allowed_keys else EMPTY_OPTION
        return WidgetDescriptor(
            row_id=row.id,
            field=RowField.KEY,
            kind=FieldKind.CHOICE,
            value=shown,
            options=(EMPTY_OPTION, *allowed_keys),
            invalid=row.duplicate,
        )
    return WidgetDescriptor(
        row_id=row.id,
        field=RowField.KEY,
        kind=FieldKind.TEXT,
        value=row.key,
        invalid=row.duplicate,
    )


def describe_value(
    row: Row,
    domain: dict[str, list[Value]],
    *,
    use_types: bool,
) -> WidgetDescriptor:
    if use_types and not row.free_text and row.value.kind is ValueKind.BOOL:
        return WidgetDescriptor(
            row_id=row.id,
            field=RowField.VALUE,
            kind=FieldKind.CHECKBOX,
            value=bool(row.value.data),
        )

    options = bound_domain(row, domain, use_types=use_types)
    if options is not None:
        shown = from_typed(row.value) if row.value in options else EMPTY_OPTION
        return WidgetDescriptor(
            row_id=row.id,
            field=RowField.VALUE,
            kind=FieldKind.CHOICE,
            value=shown,
            options=(EMPTY_OPTION, *(from_typed(option) for option in options)),
        )

    return WidgetDescriptor(
        row_id=row.id,
        field=RowField.VALUE,
        kind=FieldKind.TEXT,
        value=from_typed(row.value),
    )


def resolve_choice(raw: object, options: Sequence[Value]) -> Value | None:
    """Map a choice selection back to a domain value.

    The empty option (or ``None``) selects null. Returns None when *raw*
    matches no option.
    """
    if isinstance(raw, Value):
        if raw.is_empty:
            return NULL
        return raw if raw in options else None
    if raw is None or raw == EMPTY_OPTION:
        return NULL
    text = raw if isinstance(raw, str) else from_typed(from_raw(raw))
    for option in options:
        if from_typed(option) == text:
            return option
    return None
