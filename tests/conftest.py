"""Shared pytest fixtures and test helpers for kvinput tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from typing import Any

import pytest
from click.testing import CliRunner

from kvinput.services.editor import KVEditor
from kvinput.services.telemetry import _current_span, disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's kvinput.toml and KVINPUT_* env out of the tests."""
    for name in ("KVINPUT_CONFIG", "KVINPUT_EDITOR__DEBOUNCE_MS", "KVINPUT_EDITOR__USE_TYPES"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))


@pytest.fixture(autouse=True)
def _restore_global_state() -> Generator[None]:
    """Undo logging and telemetry changes made by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    kv_level = logging.getLogger("kvinput").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("kvinput").setLevel(kv_level)
    disable_telemetry()
    _current_span.set(None)


# ---------------------------------------------------------------------------
# Fake timer loop for the commit scheduler
# ---------------------------------------------------------------------------


class FakeHandle:
    def __init__(self, when: float, callback: Callable[[], Any]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Manual clock with ``call_later``; time is advanced in milliseconds."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.now + delay, lambda: callback(*args))
        self.handles.append(handle)
        return handle

    def advance(self, ms: float) -> None:
        """Move the clock forward, firing due timers in deadline order."""
        target = self.now + ms / 1000
        while True:
            due = sorted(
                (h for h in self.handles if not h.cancelled and h.when <= target),
                key=lambda h: h.when,
            )
            if not due:
                break
            handle = due[0]
            self.handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target

    @property
    def active(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def editor() -> KVEditor:
    """Synchronous editor (no debounce) seeded with two typed rows."""
    return KVEditor({"a": "b", "n": 1}, debounce_ms=0)


@pytest.fixture
def recorder(editor: KVEditor) -> Generator[list[dict[str, Any]]]:
    """Snapshots delivered to a listener subscribed on ``editor``."""
    calls: list[dict[str, Any]] = []
    unsubscribe = editor.subscribe(calls.append)
    yield calls
    unsubscribe()
