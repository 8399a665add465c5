"""Pluggy hook specifications for editor events.

Hooks fire synchronously from the editor's commit path; the editor is
single-threaded, so implementations must not mutate the editor.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("kvinput")
hookimpl = pluggy.HookimplMarker("kvinput")


class KvInputHookSpec:
    """Hook specifications for the kvinput plugin system."""

    @hookspec
    def post_commit(self, snapshot: dict[str, Any], duplicates: list[str]) -> None:
        """Called once per commit with an independent copy of the snapshot."""

    @hookspec
    def post_remove(self, row_id: int, key: str) -> None:
        """Called after a row is removed, explicitly or by emptying it."""

    @hookspec
    def post_replace(self, size: int) -> None:
        """Called after a full rebuild with the number of rows loaded."""
