"""Commit scheduler — debounces rapid edits into one notification.

Single-threaded and cooperative: timers run on an asyncio-style loop
(anything with ``call_later(delay, callback)`` returning a handle with
``cancel()``). Without a loop, a scheduled commit waits for :meth:`flush`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MS = 300


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerLoop(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class CommitScheduler:
    """Owns the single cancellable commit timer of one editor.

    Parameters:
        window_ms: Debounce window; 0 commits synchronously. A change takes
            effect on the next :meth:`schedule` call.
        loop: Timer loop. Defaults to the running asyncio loop, if any.
    """

    def __init__(self, window_ms: int = DEFAULT_WINDOW_MS, *, loop: TimerLoop | None = None) -> None:
        self.window_ms = window_ms
        self._loop = loop
        self._handle: TimerHandle | None = None
        self._pending: Callable[[], None] | None = None

    @property
    def pending(self) -> bool:
        """Whether a commit is waiting to fire."""
        return self._pending is not None

    def schedule(self, callback: Callable[[], None]) -> None:
        """Cancel any pending commit, then run or schedule *callback*."""
        self.cancel()
        if self.window_ms <= 0:
            callback()
            return

        self._pending = callback
        loop = self._resolve_loop()
        if loop is None:
            logger.debug("No timer loop; commit held until flush")
            return
        self._handle = loop.call_later(self.window_ms / 1000, self._fire)

    def flush(self) -> bool:
        """Fire a pending commit now. Returns whether one was pending."""
        if self._pending is None:
            return False
        if self._handle is not None:
            self._handle.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        """Drop the pending commit, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None

    def _fire(self) -> None:
        callback = self._pending
        self._handle = None
        self._pending = None
        if callback is not None:
            callback()

    def _resolve_loop(self) -> TimerLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None
