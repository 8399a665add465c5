"""Command: render the rows a seed document produces."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

import click

from kvinput.commands._base import KvCommand, editor_options

if TYPE_CHECKING:
    from kvinput.commands._context import AppContext


@click.command(
    cls=KvCommand,
    examples="""\
  echo '{"Count": 1, "Name": "x"}' | kvinput show
  kvinput show seed.json --meta '{"Color": ["red", "green"]}'
  kvinput show seed.json --keys Count,Name --no-types
  kvinput --json show seed.json""",
)
@editor_options
@click.pass_obj
def show(
    app: AppContext,
    seed: IO[str],
    meta: str | None,
    keys: str | None,
    debounce: int | None,
    use_types: bool | None,
) -> None:
    """Show the editor rows for a JSON object seed."""
    service = app.document_service(meta=meta, keys=keys, debounce=debounce, use_types=use_types)
    app.emit(service.show(seed.read()))
