"""platform / asset-name - inspect the platform-to-asset mapping offline."""

from __future__ import annotations

import dataclasses
from typing import NoReturn

import typer

from shebe_fetch.cli.commands._helpers import exit_on_acquire_error, exit_with_code
from shebe_fetch.cli.context import CLIContext, build_context
from shebe_fetch.core.errors import ErrorCode
from shebe_fetch.core.result import Err, Ok
from shebe_fetch.output.console import Style
from shebe_fetch.output.errors import acquire_error_exit_code
from shebe_fetch.platform.detection import Libc, Os, parse_arch, parse_libc, parse_os
from shebe_fetch.release.assets import asset_name, resolve_target
from shebe_fetch.release.version import parse_version


def platform_info() -> None:
    """Show the detected platform and the asset it maps to."""
    ctx = build_context()
    platform = ctx.platform

    ctx.console.print(f"os: {platform.os}", Style.DIM)
    ctx.console.print(f"arch: {platform.arch}", Style.DIM)
    ctx.console.print(f"libc: {platform.libc}", Style.DIM)
    typer.echo(str(platform))

    match resolve_target(platform):
        case Ok(target):
            ctx.console.success(
                f"supported: shebe-<version>-{target.os_token}-{target.arch_token}"
                f"{target.libc_suffix}.tar.gz"
            )
        case Err(error):
            ctx.console.error(error.message)
            exit_with_code(acquire_error_exit_code(error))


def _unknown_value(ctx: CLIContext, flag: str, value: str) -> NoReturn:
    ctx.console.error(f"unknown {flag} value: {value}")
    exit_with_code(int(ErrorCode.USER_ERROR))


def asset_name_cmd(
    version: str = typer.Option(..., "--version", help="Release tag (e.g. v0.5.7)"),
    os_name: str | None = typer.Option(
        None, "--os", help="Override OS (darwin, macos, linux, windows)", show_default=False
    ),
    arch: str | None = typer.Option(
        None, "--arch", help="Override architecture (aarch64, arm64, x86_64)", show_default=False
    ),
    libc: str | None = typer.Option(
        None, "--libc", help="Override C library (gnu, musl)", show_default=False
    ),
) -> None:
    """Print the release asset name for a version and platform (no network)."""
    ctx = build_context()
    platform = ctx.platform

    if os_name is not None:
        parsed_os = parse_os(os_name)
        if parsed_os is None:
            _unknown_value(ctx, "--os", os_name)
        # libc only describes Linux hosts
        libc_default = platform.libc if parsed_os == Os.LINUX else Libc.UNKNOWN
        platform = dataclasses.replace(platform, os=parsed_os, libc=libc_default)
    if arch is not None:
        parsed_arch = parse_arch(arch)
        if parsed_arch is None:
            _unknown_value(ctx, "--arch", arch)
        platform = dataclasses.replace(platform, arch=parsed_arch)
    if libc is not None:
        parsed_libc = parse_libc(libc)
        if parsed_libc is None:
            _unknown_value(ctx, "--libc", libc)
        platform = dataclasses.replace(platform, libc=parsed_libc)

    parsed_version = exit_on_acquire_error(parse_version(version), ctx)
    name = exit_on_acquire_error(asset_name(parsed_version, platform), ctx)
    typer.echo(name)
