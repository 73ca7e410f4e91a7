"""acquire / verify - produce the MCP server binary and check it."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from shebe_fetch.cli.commands._helpers import (
    exit_on_acquire_error,
    exit_on_error,
    exit_with_code,
    make_acquirer,
)
from shebe_fetch.cli.context import CLIContext, build_context
from shebe_fetch.core.errors import ErrorCode
from shebe_fetch.core.result import Result
from shebe_fetch.fetch.acquirer import AcquiredBinary
from shebe_fetch.fetch.launch import launch_command, verify_version, version_binary
from shebe_fetch.fetch.probe import EXPECTED_TOOLS, McpProbe
from shebe_fetch.output.console import Style
from shebe_fetch.output.errors import acquire_error_exit_code, print_acquire_error
from shebe_fetch.release.errors import AcquireError, Cancelled


def _run_acquire(ctx: CLIContext, version: str | None) -> AcquiredBinary:
    pinned = version or ctx.config.release.version
    acquirer = make_acquirer(ctx)
    try:
        result: Result[AcquiredBinary, AcquireError] = acquirer.acquire(pinned)
    except KeyboardInterrupt:
        error = Cancelled(state=str(acquirer.state))
        print_acquire_error(error, ctx.console)
        exit_with_code(acquire_error_exit_code(error))
    return exit_on_acquire_error(result, ctx)


def acquire(
    version: str | None = typer.Option(
        None,
        "--version",
        help="Release tag to pin (e.g. v0.5.7). Default: latest release.",
        show_default=False,
    ),
    data_dir: Path | None = typer.Option(
        None, "--data-dir", help="Cache directory for extracted binaries", show_default=False
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Network timeout in seconds", show_default=False
    ),
    print_command: bool = typer.Option(
        False, "--print-command", help="Print the launch command as JSON instead of the path"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors and the result"),
) -> None:
    """Download (or reuse) the shebe-mcp binary and print its path."""
    ctx = build_context(quiet=quiet, data_dir=data_dir, timeout=timeout)
    binary = _run_acquire(ctx, version)

    if print_command:
        typer.echo(json.dumps(launch_command(binary).to_dict()))
    else:
        typer.echo(str(binary.path))


def verify(
    version: str | None = typer.Option(
        None,
        "--version",
        help="Release tag to verify (default: latest release)",
        show_default=False,
    ),
    data_dir: Path | None = typer.Option(
        None, "--data-dir", help="Cache directory for extracted binaries", show_default=False
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Network and handshake timeout in seconds", show_default=False
    ),
) -> None:
    """Acquire, then check the version and the MCP initialize handshake."""
    ctx = build_context(data_dir=data_dir, timeout=timeout)
    binary = _run_acquire(ctx, version)
    console = ctx.console
    probe_timeout = ctx.config.network.timeout

    reported = exit_on_error(
        verify_version(version_binary(binary), binary.version, timeout=probe_timeout),
        ctx,
        ErrorCode.DRIFT,
    )
    console.success(f"version: {reported}")

    with McpProbe(binary.path, timeout=probe_timeout) as probe:
        info = exit_on_error(probe.initialize(), ctx, ErrorCode.DRIFT)
        console.success(
            f"initialize: {info.name or 'unnamed server'} {info.version or ''}".rstrip()
        )
        if info.protocol_version:
            console.print(f"protocol: {info.protocol_version}", Style.DIM)

        tools = exit_on_error(probe.list_tools(), ctx, ErrorCode.DRIFT)
        missing = [name for name in EXPECTED_TOOLS if name not in tools]
        if missing:
            console.warning(f"tools/list is missing: {', '.join(missing)}")
        else:
            console.success(f"tools/list: {len(tools)} tools")

    typer.echo(str(binary.path))
