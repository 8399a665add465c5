"""Command: replay scripted edits against a seed and print the result."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

import click

from kvinput.commands._base import KvCommand, build_commands, edit_options, editor_options

if TYPE_CHECKING:
    from kvinput.commands._context import AppContext


@click.command(
    cls=KvCommand,
    examples="""\
  echo '{"a": 1}' | kvinput edit --set b=2
  kvinput edit seed.json --rename a=alpha --remove b
  kvinput edit seed.json --insert-after a mid=5
  kvinput edit seed.json --duplicate a --set a=3
  kvinput -q edit seed.json --set enabled=true""",
)
@editor_options
@edit_options
@click.pass_obj
def edit(
    app: AppContext,
    seed: IO[str],
    meta: str | None,
    keys: str | None,
    debounce: int | None,
    use_types: bool | None,
    rename: tuple[str, ...],
    set_: tuple[str, ...],
    insert_after: tuple[tuple[str, str], ...],
    duplicate: tuple[str, ...],
    remove: tuple[str, ...],
) -> None:
    """Apply edits to a JSON object seed and print the committed snapshot.

    Edits are applied in a fixed order: rename, set, insert-after,
    duplicate, remove. Nothing is written back to disk.
    """
    commands = build_commands(
        rename=rename,
        set_=set_,
        insert_after=insert_after,
        duplicate=duplicate,
        remove=remove,
    )
    if not commands:
        click.echo("No edits specified. Use --help for options.", err=True)
        raise SystemExit(1)

    service = app.document_service(meta=meta, keys=keys, debounce=debounce, use_types=use_types)
    app.emit(service.edit(seed.read(), commands))
