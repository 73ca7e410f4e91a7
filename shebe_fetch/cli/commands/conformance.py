from __future__ import annotations

import typer

from shebe_fetch.cli.commands._helpers import exit_on_acquire_error, make_store
from shebe_fetch.cli.context import CLIContext, build_context
from shebe_fetch.core.errors import ErrorCode
from shebe_fetch.output.console import Style
from shebe_fetch.release.conformance import CheckStatus, ConformanceReport, check_release


def conformance(
    timeout: float | None = typer.Option(
        None, "--timeout", help="Network timeout in seconds", show_default=False
    ),
) -> None:
    """Check the latest release against the asset naming conventions."""
    ctx = build_context(timeout=timeout)
    store = make_store(ctx)

    release = exit_on_acquire_error(store.latest_release(), ctx)
    report = check_release(release)

    ctx.console.print(f"repo: {store.repo}", Style.DIM)
    _print_report(ctx, report)

    if report.has_errors():
        raise typer.Exit(code=int(ErrorCode.DRIFT))


def _print_report(ctx: CLIContext, report: ConformanceReport) -> None:
    console = ctx.console
    console.header(f"Release {report.tag}")
    for check in report.checks:
        console.print(f"{check.name}: {check.message}", _style_for_status(check.status))
        if check.hint and check.status != CheckStatus.OK:
            console.print(f"hint: {check.hint}", Style.DIM)


def _style_for_status(status: CheckStatus) -> Style:
    if status == CheckStatus.OK:
        return Style.SUCCESS
    if status == CheckStatus.WARNING:
        return Style.WARNING
    return Style.ERROR
