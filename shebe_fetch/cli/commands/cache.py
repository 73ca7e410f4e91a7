"""where / prune - inspect and clean the binary cache."""

from __future__ import annotations

from pathlib import Path

import typer

from shebe_fetch.cli.commands._helpers import (
    exit_on_acquire_error,
    exit_on_error,
    exit_with_code,
)
from shebe_fetch.cli.context import build_context
from shebe_fetch.core.errors import ErrorCode
from shebe_fetch.fetch.state import cached_versions, get_current_version, prune
from shebe_fetch.output.console import Style
from shebe_fetch.release.version import parse_version


def where(
    data_dir: Path | None = typer.Option(
        None, "--data-dir", help="Cache directory for extracted binaries", show_default=False
    ),
) -> None:
    """Show the cache directory and the versions it holds."""
    ctx = build_context(data_dir=data_dir)
    console = ctx.console

    typer.echo(str(ctx.data_dir))

    current = get_current_version(ctx.data_dir)
    cached = cached_versions(ctx.data_dir)
    if not cached:
        console.print("no cached versions", Style.DIM)
        return

    for entry in cached:
        marker = " (current)" if entry.version == current else ""
        if entry.executable:
            console.print(f"{entry.version}{marker}: {entry.path}")
        else:
            console.print(f"{entry.version}: incomplete, binary missing", Style.WARNING)


def prune_cmd(
    keep: str | None = typer.Option(
        None,
        "--keep",
        help="Version to keep (default: the last acquired version)",
        show_default=False,
    ),
    data_dir: Path | None = typer.Option(
        None, "--data-dir", help="Cache directory for extracted binaries", show_default=False
    ),
) -> None:
    """Delete every cached version except one."""
    ctx = build_context(data_dir=data_dir)
    console = ctx.console

    if keep is not None:
        kept = exit_on_acquire_error(parse_version(keep), ctx)
    else:
        current = get_current_version(ctx.data_dir)
        if current is None:
            console.error("no version recorded in the cache")
            console.print("hint: pass --keep vX.Y.Z", Style.DIM)
            exit_with_code(int(ErrorCode.USER_ERROR))
        kept = current

    removed = exit_on_error(prune(ctx.data_dir, kept), ctx, ErrorCode.IO_ERROR)
    for path in removed:
        console.print(f"removed {path}", Style.DIM)
    console.success(f"kept {kept}, removed {len(removed)}")
