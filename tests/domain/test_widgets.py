"""Tests for field descriptors and choice resolution."""

from __future__ import annotations

from fractions import Fraction

from kvinput.domain.rows import Row, RowField
from kvinput.domain.values import NULL, Value
from kvinput.domain.widgets import (
    EMPTY_OPTION,
    FieldKind,
    bound_domain,
    describe_key,
    describe_value,
    resolve_choice,
)

COLORS = {"Color": [Value.string("red"), Value.string("green")]}


def _row(key: str = "", value: Value = NULL, **kwargs: object) -> Row:
    return Row(id=1, order=Fraction(0), key=key, value=value, **kwargs)  # type: ignore[arg-type]


class TestBoundDomain:
    def test_bound_when_typing_on(self) -> None:
        assert bound_domain(_row("Color"), COLORS, use_types=True) == COLORS["Color"]

    def test_released_when_typing_off(self) -> None:
        assert bound_domain(_row("Color"), COLORS, use_types=False) is None

    def test_released_by_free_text_escape(self) -> None:
        assert bound_domain(_row("Color", free_text=True), COLORS, use_types=True) is None

    def test_empty_domain_is_unbound(self) -> None:
        assert bound_domain(_row("Color"), {"Color": []}, use_types=True) is None


class TestDescribeKey:
    def test_text_without_cap(self) -> None:
        descriptor = describe_key(_row("a", duplicate=True), None)
        assert descriptor.kind is FieldKind.TEXT
        assert descriptor.value == "a"
        assert descriptor.invalid is True

    def test_choice_over_allowed_keys(self) -> None:
        descriptor = describe_key(_row("x"), ["x", "y"])
        assert descriptor.kind is FieldKind.CHOICE
        assert descriptor.options == (EMPTY_OPTION, "x", "y")
        assert descriptor.value == "x"

    def test_foreign_key_shows_empty_option(self) -> None:
        assert describe_key(_row("z"), ["x", "y"]).value == EMPTY_OPTION


class TestDescribeValue:
    def test_checkbox_for_bool(self) -> None:
        descriptor = describe_value(_row("on", Value.boolean(True)), {}, use_types=True)
        assert descriptor.kind is FieldKind.CHECKBOX
        assert descriptor.value is True

    def test_bool_is_text_when_typing_off(self) -> None:
        descriptor = describe_value(_row("on", Value.boolean(False)), {}, use_types=False)
        assert descriptor.kind is FieldKind.TEXT
        assert descriptor.value == "false"

    def test_choice_for_bound_row(self) -> None:
        descriptor = describe_value(_row("Color", Value.string("red")), COLORS, use_types=True)
        assert descriptor.kind is FieldKind.CHOICE
        assert descriptor.value == "red"
        assert descriptor.options == (EMPTY_OPTION, "red", "green")
        assert descriptor.to_dict()["options"] == ["", "red", "green"]

    def test_out_of_domain_content_shows_empty_option(self) -> None:
        descriptor = describe_value(_row("Color", Value.string("blue")), COLORS, use_types=True)
        assert descriptor.value == EMPTY_OPTION

    def test_text_otherwise(self) -> None:
        descriptor = describe_value(_row("n", Value.number(4)), COLORS, use_types=True)
        assert descriptor.kind is FieldKind.TEXT
        assert descriptor.value == "4"
        assert descriptor.field is RowField.VALUE
        assert "options" not in descriptor.to_dict()


class TestResolveChoice:
    def test_empty_option_selects_null(self) -> None:
        assert resolve_choice(EMPTY_OPTION, COLORS["Color"]) is NULL
        assert resolve_choice(None, COLORS["Color"]) is NULL
        assert resolve_choice(Value.string(""), COLORS["Color"]) is NULL

    def test_matches_display_text(self) -> None:
        assert resolve_choice("green", COLORS["Color"]) == Value.string("green")

    def test_matches_typed_options(self) -> None:
        options = [Value.number(1), Value.number(2)]
        assert resolve_choice("2", options) == Value.number(2)
        assert resolve_choice(2, options) == Value.number(2)

    def test_value_must_be_an_option(self) -> None:
        assert resolve_choice(Value.string("red"), COLORS["Color"]) == Value.string("red")
        assert resolve_choice(Value.string("blue"), COLORS["Color"]) is None

    def test_unknown_selection(self) -> None:
        assert resolve_choice("blue", COLORS["Color"]) is None
