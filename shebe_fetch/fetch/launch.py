"""Handoff to the host runtime, and version queries on acquired binaries.

The host runtime spawns the MCP server itself; all it needs is the
absolute path. No arguments and no extra environment are required.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.fetch.acquirer import AcquiredBinary
from shebe_fetch.platform.files import is_executable
from shebe_fetch.platform.process import ProcessError, run
from shebe_fetch.release.version import ReleaseVersion

__all__ = [
    "CLI_BINARY_NAME",
    "LaunchCommand",
    "VersionCheckError",
    "VersionMismatch",
    "launch_command",
    "query_version",
    "verify_version",
    "version_binary",
]

# Command-line companion shipped in the same archive; it answers --version.
CLI_BINARY_NAME = "shebe"

DEFAULT_VERSION_TIMEOUT = 10.0


def _empty_env() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class LaunchCommand:
    """How to start the MCP server (stdio transport)."""

    command: Path
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=_empty_env)

    @property
    def argv(self) -> list[str]:
        return [str(self.command), *self.args]

    def to_dict(self) -> dict[str, object]:
        return {"command": str(self.command), "args": list(self.args), "env": dict(self.env)}


def launch_command(acquired: AcquiredBinary) -> LaunchCommand:
    """Build the launch command for an acquired binary."""
    return LaunchCommand(command=acquired.path)


@dataclass(frozen=True, slots=True)
class VersionMismatch:
    """A binary reported a different version than the one requested."""

    path: Path
    expected: str
    reported: str

    @property
    def message(self) -> str:
        return f"{self.path} reports '{self.reported}', expected {self.expected}"

    @property
    def hint(self) -> str | None:
        return "the cached copy may be stale; run `shebe-fetch prune` and acquire again"


VersionCheckError = ProcessError | VersionMismatch


def version_binary(acquired: AcquiredBinary) -> Path:
    """Binary to ask for the version: the `shebe` CLI when shipped, else the server."""
    sibling = acquired.path.parent / CLI_BINARY_NAME
    return sibling if is_executable(sibling) else acquired.path


def query_version(
    path: Path, *, timeout: float = DEFAULT_VERSION_TIMEOUT
) -> Result[str, ProcessError]:
    """Run `{path} --version` and return its trimmed output."""
    return run([str(path), "--version"], timeout=timeout).map(str.strip)


def verify_version(
    path: Path,
    version: ReleaseVersion,
    *,
    timeout: float = DEFAULT_VERSION_TIMEOUT,
) -> Result[str, VersionCheckError]:
    """Check that path reports version.

    Output such as "shebe 0.5.7" or "shebe v0.5.7" matches v0.5.7; the
    comparison is on whole whitespace-separated words.
    """
    result = query_version(path, timeout=timeout)
    if isinstance(result, Err):
        return result

    reported = result.value
    words = reported.split()
    if version.number in words or version.tag in words:
        return Ok(reported)
    return Err(VersionMismatch(path=path, expected=version.tag, reported=reported))
