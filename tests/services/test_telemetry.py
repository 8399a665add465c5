"""Tests for telemetry primitives: Span, trace_span, @traced."""

from __future__ import annotations

import time
from collections.abc import Generator

import pytest

from kvinput.services.result import ServiceResult
from kvinput.services.telemetry import (
    Span,
    _current_span,
    disable_telemetry,
    enable_telemetry,
    get_current_span,
    trace_span,
    traced,
)


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    disable_telemetry()
    _current_span.set(None)


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        assert Span(name="test").duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.005)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict_minimal(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert "children" not in d
        assert "annotations" not in d

    def test_annotate(self) -> None:
        span = Span(name="test")
        span.annotate(rows=3)
        assert span.to_dict()["annotations"] == {"rows": 3}


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("test") as span:
            assert span is None

    def test_no_root_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("test") as span:
            assert span is None

    def test_child_attached_to_root(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("child") as span:
                assert span is not None
                assert get_current_span() is span
            assert root.children[0].name == "child"
            assert root.children[0].end_time is not None
            assert get_current_span() is root
        finally:
            _current_span.reset(token)


class _Service:
    @traced
    def run(self) -> ServiceResult:
        with trace_span("inner"):
            pass
        return ServiceResult(ok=True, op="run")

    @traced
    def plain(self) -> int:
        return 7

    @traced
    def fail(self) -> None:
        raise RuntimeError("nope")


class TestTraced:
    def test_disabled_leaves_result_untouched(self) -> None:
        assert _Service().run().meta is None

    def test_enabled_injects_span_tree(self) -> None:
        enable_telemetry()
        result = _Service().run()
        assert result.meta is not None
        telemetry = result.meta["telemetry"]
        assert telemetry["name"] == "_Service.run"
        assert telemetry["children"][0]["name"] == "inner"

    def test_non_result_return_passes_through(self) -> None:
        enable_telemetry()
        assert _Service().plain() == 7

    def test_exception_resets_span(self) -> None:
        enable_telemetry()
        with pytest.raises(RuntimeError):
            _Service().fail()
        assert _current_span.get() is None

    def test_get_current_span_disabled(self) -> None:
        assert get_current_span() is None

    def test_trace_span_annotations(self) -> None:
        enable_telemetry()

        class _Annotated:
            @traced
            def run(self) -> ServiceResult:
                with trace_span("replay", edits=2):
                    pass
                return ServiceResult(ok=True, op="edit")

        result = _Annotated().run()
        assert result.meta is not None
        assert result.meta["telemetry"]["children"][0]["annotations"] == {"edits": 2}
