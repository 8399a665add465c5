"""Opt-in timing for DocumentService operations.

``--verbose`` switches telemetry on for the process. Each ``@traced``
service call then owns a root :class:`Span`; ``trace_span`` blocks inside
it (seed parsing, edit replay, the final flush) hang child spans off
whatever span is current. The finished tree lands in
``ServiceResult.meta["telemetry"]`` and is logged at debug level.

Switched off, every entry point costs one ContextVar read.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from kvinput.services.result import ServiceResult

log = structlog.get_logger("kvinput.telemetry")

_enabled: ContextVar[bool] = ContextVar("kvinput_telemetry", default=False)
_current_span: ContextVar[Span | None] = ContextVar("kvinput_current_span", default=None)

_P = ParamSpec("_P")
_R = TypeVar("_R")


@dataclass
class Span:
    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        """Elapsed milliseconds; 0.0 while the span is still open."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def child(self, name: str) -> Span:
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    def end(self) -> None:
        if self.end_time is None:
            self.end_time = time.perf_counter()

    def annotate(self, **values: Any) -> None:
        self.annotations.update(values)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


def enable_telemetry() -> None:
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The span an operation may annotate, or None when telemetry is off."""
    return _current_span.get() if _enabled.get() else None


@contextmanager
def _activate(span: Span) -> Iterator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str, **annotations: Any) -> Iterator[Span | None]:
    """Time a block as a child of the current span.

    Outside a ``@traced`` call (or with telemetry off) this yields None and
    records nothing.
    """
    parent = get_current_span()
    if parent is None:
        yield None
        return
    span = parent.child(name)
    span.annotate(**annotations)
    with _activate(span):
        yield span


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Run a service method under a root span named after it.

    A ServiceResult return value comes back with the span tree merged into
    its ``meta``; any other return value passes through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__)
        try:
            with _activate(root):
                result = func(*args, **kwargs)
        except Exception:
            log.debug("span.failed", span_name=root.name, duration_ms=round(root.duration_ms, 2))
            raise

        log.debug(
            "span.complete",
            span_name=root.name,
            duration_ms=round(root.duration_ms, 2),
            children=len(root.children),
        )
        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": root.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper
