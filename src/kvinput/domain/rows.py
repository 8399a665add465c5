"""Row model and per-row lifecycle.

A row is one key/value editing unit. Its lifecycle is
``editing -> committed -> removed``: content changes put a row back into
``editing``, re-evaluating invariants commits it, and removal is terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from fractions import Fraction

from kvinput.domain.values import NULL, JsonScalar, Value, ValueKind

RowId = int


class RowField(StrEnum):
    """Editable fields of a row."""

    KEY = "key"
    VALUE = "value"


class RowState(StrEnum):
    """Lifecycle states of a row."""

    EDITING = "editing"
    COMMITTED = "committed"
    REMOVED = "removed"


ROW_TRANSITIONS: dict[str, list[str]] = {
    "editing": ["committed", "removed"],
    "committed": ["editing", "removed"],
    "removed": [],
}


def is_valid_transition(current: str, target: str) -> bool:
    """Check if a row may move from *current* to *target*."""
    return target in ROW_TRANSITIONS.get(current, [])


@dataclass
class Row:
    """Mutable row record, owned exclusively by the store.

    Attributes:
        id: Stable identifier handed out to callers.
        order: Sequencing key; never exposed in snapshots.
        key: Key text ("" when empty).
        value: Typed value content.
        is_sentinel: Trailing always-empty insertion row.
        duplicate: Another row shares this key.
        free_text: Escape flag forcing a text field for this row's value.
    """

    id: RowId
    order: Fraction
    key: str = ""
    value: Value = NULL
    is_sentinel: bool = False
    duplicate: bool = False
    free_text: bool = False
    state: RowState = RowState.EDITING

    @property
    def is_empty(self) -> bool:
        return self.key == "" and self.value.is_empty

    def transition(self, target: RowState) -> None:
        """Move to *target*, a no-op when already there.

        Raises:
            ValueError: The transition is not allowed (e.g. out of ``removed``).
        """
        if self.state is target:
            return
        if not is_valid_transition(self.state, target):
            msg = f"Invalid row transition: {self.state} -> {target}"
            raise ValueError(msg)
        self.state = target

    def view(self, position: int) -> RowView:
        return RowView(
            id=self.id,
            position=position,
            key=self.key,
            value=self.value.to_json(),
            kind=self.value.kind,
            is_sentinel=self.is_sentinel,
            duplicate=self.duplicate,
            free_text=self.free_text,
            state=self.state,
        )


@dataclass(frozen=True)
class RowView:
    """Read-only copy of a row for callers outside the store."""

    id: RowId
    position: int
    key: str
    value: JsonScalar
    kind: ValueKind
    is_sentinel: bool
    duplicate: bool
    free_text: bool
    state: RowState

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "position": self.position,
            "key": self.key,
            "value": self.value,
            "kind": str(self.kind),
            "sentinel": self.is_sentinel,
            "duplicate": self.duplicate,
        }
