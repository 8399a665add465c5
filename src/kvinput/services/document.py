"""DocumentService — loads a seed document into an editor and replays edits.

Pipeline: PARSE SEED → CONFIGURE → REPLAY EDITS → FLUSH → RESPOND

Nothing is written back to disk; the committed snapshot is the output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from kvinput.domain.rows import RowField
from kvinput.services._helpers import parse_json_object
from kvinput.services.editor import KVEditor
from kvinput.services.result import ErrorCode, ServiceResult
from kvinput.services.telemetry import get_current_span, trace_span, traced

if TYPE_CHECKING:
    from kvinput.config.models import DisplayConfig, EditorConfig
    from kvinput.plugins.event_bus import EventBus


class EditAction(StrEnum):
    """Scripted edits, applied in this order by the CLI."""

    RENAME = "rename"
    SET = "set"
    INSERT_AFTER = "insert-after"
    DUPLICATE = "duplicate"
    REMOVE = "remove"


@dataclass(frozen=True)
class EditCommand:
    """One scripted edit addressed by key (the first row holding it)."""

    action: EditAction
    key: str
    value: str | None = None
    target: str | None = None

    def describe(self) -> str:
        parts = [str(self.action), self.key]
        if self.target is not None:
            parts.append(f"-> {self.target}")
        if self.value is not None:
            parts.append(f"= {self.value}")
        return " ".join(parts)


class DocumentService:
    """Drives a :class:`KVEditor` on behalf of the CLI."""

    def __init__(
        self,
        editor_config: EditorConfig,
        display: DisplayConfig | None = None,
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        self._config = editor_config
        self._display = display
        self._bus = event_bus

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def open(self, seed_text: str | None, warnings: list[str] | None = None) -> KVEditor:
        """Build an editor seeded from *seed_text* (a JSON object)."""
        seed = parse_json_object(seed_text)
        if seed is None and seed_text and seed_text.strip():
            if warnings is not None:
                warnings.append("Seed is not a JSON object; starting empty")
        editor = KVEditor(
            seed,
            debounce_ms=self._config.debounce_ms,
            use_types=self._config.use_types,
            meta=self._config.meta,
            keys=self._config.keys,
            event_bus=self._bus,
        )
        if self._display is not None:
            editor.set_attribute("title", self._display.title)
            editor.set_attribute("key-title", self._display.key_title)
            editor.set_attribute("value-title", self._display.value_title)
        return editor

    @traced
    def show(self, seed_text: str | None) -> ServiceResult:
        """Render the rows a seed produces, with their field descriptors."""
        warnings: list[str] = []
        editor = self.open(seed_text, warnings)
        return ServiceResult.success("show", _document_payload(editor), warnings)

    @traced
    def edit(self, seed_text: str | None, commands: list[EditCommand]) -> ServiceResult:
        """Replay *commands* through the mutation protocol and commit once."""
        warnings: list[str] = []
        editor, commits, applied = self._replay(seed_text, commands, warnings)
        data = _document_payload(editor)
        data["applied"] = applied
        data["commits"] = len(commits)
        return ServiceResult.success("edit", data, warnings + editor.warnings)

    @traced
    def check(self, seed_text: str | None, commands: list[EditCommand] | None = None) -> ServiceResult:
        """Report duplicate keys, optionally after replaying *commands*."""
        warnings: list[str] = []
        editor, _, _ = self._replay(seed_text, commands or [], warnings)
        duplicates = editor.duplicates()
        data = _document_payload(editor)
        if duplicates:
            return ServiceResult.failure(
                "check",
                ErrorCode.DUPLICATE_KEYS,
                f"Duplicate keys: {', '.join(duplicates)}",
                data=data,
                detail={"duplicates": duplicates},
                warnings=warnings,
            )
        return ServiceResult.success("check", data, warnings)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _replay(
        self,
        seed_text: str | None,
        commands: list[EditCommand],
        warnings: list[str],
    ) -> tuple[KVEditor, list[dict[str, Any]], int]:
        editor = self.open(seed_text, warnings)
        commits: list[dict[str, Any]] = []
        editor.subscribe(commits.append)

        applied = 0
        with trace_span("replay"):
            for command in commands:
                if _apply(editor, command):
                    applied += 1
                else:
                    warnings.append(f"Skipped edit: {command.describe()}")
            with trace_span("flush"):
                editor.flush()

        span = get_current_span()
        if span is not None:
            span.annotate(edits=len(commands), commits=len(commits))
        return editor, commits, applied


def _apply(editor: KVEditor, command: EditCommand) -> bool:
    """Apply one scripted edit. Returns False when it had no effect."""
    row_id = editor.find(command.key)

    if command.action is EditAction.SET:
        created = False
        if row_id is None:
            row_id = editor.sentinel
            if row_id is None:
                return False
            created = editor.update(row_id, RowField.KEY, command.key).changed
            if not created:
                return False
        outcome = editor.update(row_id, RowField.VALUE, command.value or "")
        return created or outcome.changed

    if row_id is None:
        return False
    if command.action is EditAction.RENAME:
        return editor.update(row_id, RowField.KEY, command.target or "").changed
    if command.action is EditAction.INSERT_AFTER:
        return editor.insert_after(row_id, command.target or "", command.value) is not None
    if command.action is EditAction.DUPLICATE:
        return editor.duplicate(row_id) is not None
    editor.remove(row_id)
    return True


def _document_payload(editor: KVEditor) -> dict[str, Any]:
    rows: list[dict[str, Any]] = []
    for view in editor.rows():
        key_field, value_field = editor.descriptors(view.id)
        rows.append(
            {
                **view.to_dict(),
                "key_field": key_field.to_dict(),
                "value_field": value_field.to_dict(),
            }
        )
    return {
        "snapshot": editor.snapshot(),
        "rows": rows,
        "duplicates": editor.duplicates(),
        "meta": editor.meta,
        "keys": editor.keys,
        "titles": dict(editor.titles),
    }
