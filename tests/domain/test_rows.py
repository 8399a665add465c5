"""Tests for the row model and its lifecycle transitions."""

from __future__ import annotations

from fractions import Fraction

import pytest

from kvinput.domain.rows import ROW_TRANSITIONS, Row, RowState, is_valid_transition
from kvinput.domain.values import NULL, Value, ValueKind


class TestTransitions:
    def test_removed_is_terminal(self) -> None:
        assert ROW_TRANSITIONS["removed"] == []

    @pytest.mark.parametrize(
        ("current", "target", "valid"),
        [
            ("editing", "committed", True),
            ("committed", "editing", True),
            ("committed", "removed", True),
            ("removed", "editing", False),
            ("unknown", "editing", False),
        ],
    )
    def test_is_valid_transition(self, current: str, target: str, valid: bool) -> None:
        assert is_valid_transition(current, target) is valid

    def test_transition_to_same_state_is_noop(self) -> None:
        row = Row(id=0, order=Fraction(0))
        row.transition(RowState.EDITING)
        assert row.state is RowState.EDITING

    def test_cannot_leave_removed(self) -> None:
        row = Row(id=0, order=Fraction(0), state=RowState.REMOVED)
        with pytest.raises(ValueError, match="Invalid row transition"):
            row.transition(RowState.COMMITTED)


class TestRow:
    def test_empty_needs_both_fields_empty(self) -> None:
        assert Row(id=0, order=Fraction(0)).is_empty
        assert Row(id=0, order=Fraction(0), value=Value.string("")).is_empty
        assert not Row(id=0, order=Fraction(0), key="a").is_empty
        assert not Row(id=0, order=Fraction(0), value=Value.boolean(False)).is_empty

    def test_view_hides_order(self) -> None:
        row = Row(id=3, order=Fraction(7, 2), key="n", value=Value.number(1))
        view = row.view(position=1)
        assert view.to_dict() == {
            "id": 3,
            "position": 1,
            "key": "n",
            "value": 1,
            "kind": "number",
            "sentinel": False,
            "duplicate": False,
        }

    def test_view_is_a_copy(self) -> None:
        row = Row(id=0, order=Fraction(0), key="a", value=NULL)
        view = row.view(position=0)
        row.key = "b"
        assert view.key == "a"
        assert view.kind is ValueKind.NULL
