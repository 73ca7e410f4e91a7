"""Tests for fetch/launch.py - launch handoff and version checks."""

import sys
from pathlib import Path

import pytest

from shebe_fetch.core.result import Err, Ok
from shebe_fetch.fetch.acquirer import AcquiredBinary
from shebe_fetch.fetch.launch import (
    LaunchCommand,
    VersionMismatch,
    launch_command,
    query_version,
    verify_version,
    version_binary,
)
from shebe_fetch.platform.process import ProcessError
from shebe_fetch.release.version import ReleaseVersion

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="shebang scripts")

V7 = ReleaseVersion(tag="v0.5.7")


def write_script(path: Path, output: str, *, exit_code: int = 0) -> Path:
    path.write_text(f"#!/bin/sh\necho '{output}'\nexit {exit_code}\n")
    path.chmod(0o755)
    return path


class TestLaunchCommand:
    """Tests for launch_command()."""

    def test_path_only(self, tmp_path: Path) -> None:
        binary = tmp_path / "shebe-mcp"
        command = launch_command(AcquiredBinary(path=binary, version=V7, from_cache=False))
        assert command == LaunchCommand(command=binary)
        assert command.argv == [str(binary)]

    def test_to_dict(self, tmp_path: Path) -> None:
        command = LaunchCommand(command=tmp_path / "shebe-mcp")
        assert command.to_dict() == {
            "command": str(tmp_path / "shebe-mcp"),
            "args": [],
            "env": {},
        }


@posix_only
class TestVersionBinary:
    """Tests for version_binary()."""

    def test_prefers_cli_sibling(self, tmp_path: Path) -> None:
        server = write_script(tmp_path / "shebe-mcp", "")
        cli = write_script(tmp_path / "shebe", "shebe 0.5.7")
        acquired = AcquiredBinary(path=server, version=V7, from_cache=True)
        assert version_binary(acquired) == cli

    def test_falls_back_to_server(self, tmp_path: Path) -> None:
        server = write_script(tmp_path / "shebe-mcp", "")
        acquired = AcquiredBinary(path=server, version=V7, from_cache=True)
        assert version_binary(acquired) == server


@posix_only
class TestVerifyVersion:
    """Tests for query_version()/verify_version()."""

    def test_query(self, tmp_path: Path) -> None:
        script = write_script(tmp_path / "shebe", "shebe 0.5.7")
        assert query_version(script) == Ok("shebe 0.5.7")

    @pytest.mark.parametrize("output", ["shebe 0.5.7", "shebe v0.5.7", "0.5.7"])
    def test_match(self, tmp_path: Path, output: str) -> None:
        script = write_script(tmp_path / "shebe", output)
        assert verify_version(script, V7) == Ok(output)

    def test_mismatch(self, tmp_path: Path) -> None:
        script = write_script(tmp_path / "shebe", "shebe 0.5.6")
        result = verify_version(script, V7)
        assert result == Err(VersionMismatch(path=script, expected="v0.5.7", reported="shebe 0.5.6"))
        assert "prune" in (result.error.hint or "")

    def test_prefix_is_not_a_match(self, tmp_path: Path) -> None:
        script = write_script(tmp_path / "shebe", "shebe 0.5.70")
        assert isinstance(verify_version(script, V7), Err)

    def test_failing_binary(self, tmp_path: Path) -> None:
        script = write_script(tmp_path / "shebe", "boom", exit_code=3)
        result = verify_version(script, V7)
        assert isinstance(result, Err)
        assert isinstance(result.error, ProcessError)
        assert result.error.returncode == 3

    def test_missing_binary(self, tmp_path: Path) -> None:
        result = verify_version(tmp_path / "nope", V7)
        assert isinstance(result, Err)
        assert isinstance(result.error, ProcessError)
