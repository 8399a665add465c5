"""Command: check a seed (optionally after edits) for duplicate keys."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

import click

from kvinput.commands._base import KvCommand, build_commands, edit_options, editor_options

if TYPE_CHECKING:
    from kvinput.commands._context import AppContext


@click.command(
    cls=KvCommand,
    examples="""\
  kvinput check seed.json
  kvinput check seed.json --rename b=a
  kvinput --json check seed.json --duplicate a""",
)
@editor_options
@edit_options
@click.pass_obj
def check(
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
    """Exit non-zero when two rows share a key."""
    commands = build_commands(
        rename=rename,
        set_=set_,
        insert_after=insert_after,
        duplicate=duplicate,
        remove=remove,
    )
    service = app.document_service(meta=meta, keys=keys, debounce=debounce, use_types=use_types)
    app.emit(service.check(seed.read(), commands))
