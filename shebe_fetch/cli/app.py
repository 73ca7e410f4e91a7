from __future__ import annotations

import os
from pathlib import Path

import typer

from shebe_fetch import __version__
from shebe_fetch.cli.commands.acquire import acquire, verify
from shebe_fetch.cli.commands.cache import prune_cmd, where
from shebe_fetch.cli.commands.conformance import conformance
from shebe_fetch.cli.commands.platform_cmd import asset_name_cmd, platform_info
from shebe_fetch.core.config import ENV_CONFIG
from shebe_fetch.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    invoke_without_command=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(acquire)
app.command("asset-name")(asset_name_cmd)
app.command("platform")(platform_info)
app.command()(conformance)
app.command()(verify)
app.command()(where)
app.command("prune")(prune_cmd)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $SHEBE_FETCH_CONFIG, then the user config dir)",
        show_default=False,
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if config is not None:
        path = config.expanduser()
        if not path.is_file():
            typer.echo(f"error: --config '{path}' is not a file", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[ENV_CONFIG] = str(path)


def main() -> None:
    app()
