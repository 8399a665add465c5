"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO); the caller
extracts the text via ``get_output(console)``. Renderers are dispatched
by ``result.op``; unknown ops fall through to a generic key-value view.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from kvinput.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from kvinput.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: the compact snapshot, or a status line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"
    snapshot = result.data.get("snapshot")
    if snapshot is not None and result.op != "check":
        return json.dumps(snapshot)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="kv.ok")
    op = Text(f"  {result.op}", style="kv.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    console.print(Text(f"  {key}: ", style="kv.dim"), Text(str(value)), end="")
    console.print()


def _cell_text(field: dict[str, Any], *, duplicate: bool = False) -> Text:
    kind = str(field.get("kind", "text"))
    value = field.get("value", "")
    style = style_for_kind(kind, duplicate=duplicate)
    if kind == "checkbox":
        return Text("[x]" if value else "[ ]", style=style)
    text = Text(str(value), style=style)
    options = [opt for opt in field.get("options", []) if opt != ""]
    if kind == "choice" and options:
        text.append(f"  ({' | '.join(options)})", style="kv.dim")
    return text


def _row_table(data: dict[str, Any], *, verbose: bool = False) -> Table:
    """Build the row table: one line per row, sentinel last."""
    titles = data.get("titles") or {}
    table = Table(
        title=titles.get("title") or None,
        show_header=True,
        show_lines=False,
        pad_edge=False,
        expand=False,
    )
    table.add_column(titles.get("key-title") or "Key", style="kv.key")
    table.add_column(titles.get("value-title") or "Value")
    table.add_column("Field", style="kv.dim")
    if verbose:
        table.add_column("Row", style="kv.dim", justify="right")

    for row in data.get("rows", []):
        key_field = row.get("key_field", {})
        value_field = row.get("value_field", {})
        if row.get("sentinel"):
            key_cell = Text("(new)", style="kv.dim")
        else:
            key_cell = Text(str(row.get("key", "")))
            if row.get("duplicate"):
                key_cell.stylize("kv.duplicate")
                key_cell.append(" (duplicate)", style="kv.duplicate")
        cells: list[Any] = [
            key_cell,
            _cell_text(value_field, duplicate=bool(row.get("duplicate"))),
            f"{key_field.get('kind', 'text')}/{value_field.get('kind', 'text')}",
        ]
        if verbose:
            cells.append(str(row.get("id", "")))
        table.add_row(*cells)
    return table


def stringify(data: dict[str, Any], indent: int = 4) -> str:
    """Pretty-print a snapshot one pair per line, in snapshot order."""
    if not data:
        return "{}"
    pad = " " * indent
    pairs = [f"{pad}{json.dumps(key)}: {json.dumps(value)}" for key, value in data.items()]
    return "{\n" + ",\n".join(pairs) + "\n}"


def _render_snapshot(console: Console, snapshot: dict[str, Any]) -> None:
    console.print()
    console.print(Text("  snapshot:", style="kv.dim"))
    for line in stringify(snapshot).splitlines():
        console.print(Text(f"  {line}"))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block including the telemetry span tree."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="kv.dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    prefix = " " * indent
    duration = span_data.get("duration_ms", 0.0)
    style = "yellow" if duration > 100 else "dim"
    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {span_data.get('name', '?')}"

    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(Text("ERROR", style="kv.error"), Text(f"  {result.op}", style="kv.op"), f": {msg}")

    if result.data.get("rows"):
        console.print(_row_table(result.data, verbose=verbose))
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="kv.dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def _render_document(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render show/edit/check results: row table, counters, snapshot."""
    data = result.data
    _status_line(console, result)
    for key in ("applied", "commits"):
        if key in data:
            _field(console, key, data[key])
    if data.get("keys"):
        _field(console, "keys", ", ".join(data["keys"]))
    duplicates = data.get("duplicates") or []
    if duplicates:
        console.print(Text(f"  duplicates: {', '.join(duplicates)}", style="kv.duplicate"))

    console.print(_row_table(data, verbose=verbose))
    _render_snapshot(console, data.get("snapshot") or {})
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            value = json.dumps(value, separators=(",", ":"))
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS = {
    "show": _render_document,
    "edit": _render_document,
    "check": _render_document,
}
