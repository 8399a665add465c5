"""The ``kvinput`` command: global output flags, then show / edit / check."""

from __future__ import annotations

from typing import Any

import click

from kvinput import __version__
from kvinput.commands import register_commands
from kvinput.commands._context import AppContext
from kvinput.config.settings import KvSettings


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(__version__, "--version", prog_name="kvinput")
@click.option("--json", "json_output", is_flag=True, help="Print the result as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print only the committed snapshot.")
@click.option("-v", "--verbose", is_flag=True, help="Show row ids, debug logs and timings.")
@click.option("--log-json", is_flag=True, help="Emit log records on stderr as JSON lines.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Read this TOML file instead of searching for kvinput.toml.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, **flags: Any) -> None:
    """kvinput: load a JSON object into an ordered key/value editor.

    Rows keep their insertion order, keys may repeat while editing, and
    each commit publishes a plain snapshot of the rows.
    """
    ctx.obj = AppContext(KvSettings.from_cli(config_path=config_path, **flags))
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
