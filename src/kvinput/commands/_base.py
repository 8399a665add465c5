"""Custom Click base classes and shared option groups.

KvCommand accepts an ``examples`` parameter: ``--examples`` prints them
and exits, keeping ``--help`` concise. ``editor_options`` and
``edit_options`` are shared by the document commands.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from kvinput.services.document import EditAction, EditCommand

F = Callable[..., Any]


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class KvCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def editor_options(func: F) -> F:
    """Seed argument plus per-invocation editor overrides."""
    decorators = [
        click.argument("seed", type=click.File("r"), default="-", required=False),
        click.option("--meta", default=None, help="JSON object of key -> allowed values."),
        click.option("--keys", default=None, help="Allowed keys (JSON list or comma list)."),
        click.option("--debounce", type=int, default=None, help="Commit debounce window (ms)."),
        click.option("--types/--no-types", "use_types", default=None, help="Infer value types."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def edit_options(func: F) -> F:
    """Repeatable scripted edits, applied in the order listed in --help."""
    decorators = [
        click.option("--rename", multiple=True, metavar="OLD=NEW", help="Rename a key."),
        click.option("--set", "set_", multiple=True, metavar="KEY=VALUE", help="Set (or add) a value."),
        click.option(
            "--insert-after",
            nargs=2,
            multiple=True,
            metavar="KEY NEWKEY=VALUE",
            help="Insert a row right after KEY.",
        ),
        click.option("--duplicate", multiple=True, metavar="KEY", help="Duplicate a row."),
        click.option("--remove", multiple=True, metavar="KEY", help="Remove a row."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _split_pair(text: str, option: str) -> tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep:
        msg = f"{option} expects KEY=VALUE, got {text!r}"
        raise click.BadParameter(msg)
    return key, value


def build_commands(
    *,
    rename: tuple[str, ...] = (),
    set_: tuple[str, ...] = (),
    insert_after: tuple[tuple[str, str], ...] = (),
    duplicate: tuple[str, ...] = (),
    remove: tuple[str, ...] = (),
) -> list[EditCommand]:
    """Turn edit option values into EditCommands in application order."""
    commands: list[EditCommand] = []
    for pair in rename:
        old, new = _split_pair(pair, "--rename")
        commands.append(EditCommand(EditAction.RENAME, old, target=new))
    for pair in set_:
        key, value = _split_pair(pair, "--set")
        commands.append(EditCommand(EditAction.SET, key, value=value))
    for anchor, pair in insert_after:
        new_key, value = _split_pair(pair, "--insert-after")
        commands.append(EditCommand(EditAction.INSERT_AFTER, anchor, value=value, target=new_key))
    for key in duplicate:
        commands.append(EditCommand(EditAction.DUPLICATE, key))
    for key in remove:
        commands.append(EditCommand(EditAction.REMOVE, key))
    return commands
