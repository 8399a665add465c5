"""Rich theme and buffered console for rendering editor documents.

Renderers draw onto a console backed by StringIO and return the text, so
``format_result()`` stays a plain ``-> str`` function. Rich drops color
codes by itself when stdout is not a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

from kvinput.domain.widgets import FieldKind

RENDER_WIDTH = 120

_KIND_COLORS: dict[FieldKind, str] = {
    FieldKind.TEXT: "none",
    FieldKind.CHECKBOX: "magenta",
    FieldKind.CHOICE: "blue",
}

KV_THEME = Theme(
    {
        "kv.ok": "bold green",
        "kv.error": "bold red",
        "kv.warning": "bold yellow",
        "kv.op": "bold cyan",
        "kv.key": "bold",
        "kv.dim": "dim",
        "kv.duplicate": "red",
        **{f"kv.kind.{kind}": color for kind, color in _KIND_COLORS.items()},
    }
)


def create_console(width: int | None = None) -> Console:
    return Console(file=StringIO(), theme=KV_THEME, highlight=False, width=width or RENDER_WIDTH)


def get_output(console: Console) -> str:
    """Text drawn so far on a console made by :func:`create_console`."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(field_kind: str, *, duplicate: bool = False) -> str:
    """Theme style for a value cell of *field_kind*.

    Duplicate rows are flagged on every cell; unknown kinds get no style.
    """
    if duplicate:
        return "kv.duplicate"
    if field_kind not in _KIND_COLORS:
        return ""
    return f"kv.kind.{field_kind}"
