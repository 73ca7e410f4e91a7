"""Shared helpers for CLI commands."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, NoReturn

import typer

from shebe_fetch.core.errors import ErrorCode
from shebe_fetch.core.result import Err, Result
from shebe_fetch.fetch.acquirer import Acquirer, RetryPolicy
from shebe_fetch.output.console import Style
from shebe_fetch.output.errors import acquire_error_exit_code, print_acquire_error
from shebe_fetch.release.errors import AcquireError
from shebe_fetch.release.store import ReleaseStore

if TYPE_CHECKING:
    from shebe_fetch.cli.context import CLIContext


def make_store(ctx: CLIContext) -> ReleaseStore:
    return ReleaseStore(
        ctx.http,
        repo=ctx.config.release.repo,
        api_base=ctx.config.release.api_base,
    )


def make_acquirer(ctx: CLIContext, *, cancel: threading.Event | None = None) -> Acquirer:
    return Acquirer(
        store=make_store(ctx),
        http=ctx.http,
        data_dir=ctx.data_dir,
        console=ctx.console,
        platform_detector=lambda: ctx.platform,
        retry=RetryPolicy.from_config(ctx.config.network),
        cancel=cancel,
    )


def exit_on_acquire_error[T](result: Result[T, AcquireError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its code."""
    if isinstance(result, Err):
        print_acquire_error(result.error, ctx.console)
        raise typer.Exit(code=acquire_error_exit_code(result.error))
    return result.value


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode,
) -> T:
    """Exit with error_code if result is Err, otherwise return the value.

    Expects error objects to have 'message' and optional 'hint' attributes;
    falls back to str(error).
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
