"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shebe_fetch.core.errors import ErrorCode
from shebe_fetch.output.console import Style
from shebe_fetch.release.errors import (
    AcquireError,
    Cancelled,
    CorruptArchive,
    InstallIOError,
    InvalidVersion,
    MalformedArchive,
    NetworkError,
    RateLimited,
    ReleaseNotFound,
    UnsupportedPlatform,
)

if TYPE_CHECKING:
    from shebe_fetch.output.console import ConsoleProtocol

__all__ = ["print_acquire_error", "acquire_error_exit_code"]


def print_acquire_error(error: AcquireError, console: ConsoleProtocol) -> None:
    """Print an acquisition error with its hint."""
    console.error(error.message)
    match error:
        case MalformedArchive(entries=entries) if entries:
            console.print("archive entries:", Style.DIM)
            for name in entries:
                console.print(f"  {name}", Style.DIM)
        case ReleaseNotFound(available=available, drifted=drifted) if available:
            if drifted:
                console.print(f"hint: {error.hint}", Style.DIM)
            console.print("available assets:", Style.DIM)
            for name in available:
                console.print(f"  {name}", Style.DIM)
        case _:
            if error.hint:
                console.print(f"hint: {error.hint}", Style.DIM)


def acquire_error_exit_code(error: AcquireError) -> int:
    """Get exit code for an acquisition error."""
    match error:
        case UnsupportedPlatform():
            return int(ErrorCode.UNSUPPORTED)
        case InvalidVersion():
            return int(ErrorCode.USER_ERROR)
        case ReleaseNotFound():
            return int(ErrorCode.NOT_FOUND)
        case NetworkError() | RateLimited():
            return int(ErrorCode.NETWORK_ERROR)
        case CorruptArchive() | MalformedArchive():
            return int(ErrorCode.ARCHIVE_ERROR)
        case Cancelled():
            return int(ErrorCode.CANCELLED)
        case InstallIOError():
            return int(ErrorCode.IO_ERROR)
