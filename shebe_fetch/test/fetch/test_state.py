"""Tests for fetch/state.py - cached binary state."""

import json
import sys
from pathlib import Path

import pytest

from shebe_fetch.core.result import Ok
from shebe_fetch.fetch.state import (
    STATE_FILE,
    CachedBinaryState,
    cached_versions,
    get_current_version,
    install_dir,
    load_state,
    lookup_cached,
    prune,
    record_version,
    save_state,
)
from shebe_fetch.release.version import ReleaseVersion

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")

V6 = ReleaseVersion(tag="v0.5.6")
V7 = ReleaseVersion(tag="v0.5.7")


def fake_install(data_dir: Path, version: ReleaseVersion, *, executable: bool = True) -> Path:
    directory = install_dir(data_dir, version)
    directory.mkdir(parents=True)
    binary = directory / "shebe-mcp"
    binary.write_text("#!/bin/sh\n")
    binary.chmod(0o755 if executable else 0o644)
    return binary


class TestStateFile:
    """Tests for load_state/save_state."""

    def test_missing(self, tmp_path: Path) -> None:
        assert load_state(tmp_path) == {}

    def test_roundtrip(self, tmp_path: Path) -> None:
        state = {
            "shebe-mcp": CachedBinaryState(version="v0.5.7", installed_at="2025-01-01T00:00:00")
        }
        save_state(tmp_path, state)
        assert load_state(tmp_path) == state

    def test_corrupted(self, tmp_path: Path) -> None:
        (tmp_path / STATE_FILE).write_text("{not json")
        assert load_state(tmp_path) == {}

    def test_wrong_shape(self, tmp_path: Path) -> None:
        (tmp_path / STATE_FILE).write_text(json.dumps({"shebe-mcp": {"unexpected": 1}}))
        assert load_state(tmp_path) == {}

    def test_record_and_current(self, tmp_path: Path) -> None:
        assert get_current_version(tmp_path) is None
        record_version(tmp_path, V7)
        assert get_current_version(tmp_path) == V7

    def test_invalid_recorded_version(self, tmp_path: Path) -> None:
        save_state(tmp_path, {"shebe-mcp": CachedBinaryState.now("latest")})
        assert get_current_version(tmp_path) is None


class TestLookup:
    """Tests for lookup_cached/cached_versions."""

    def test_install_dir(self, tmp_path: Path) -> None:
        assert install_dir(tmp_path, V7) == tmp_path / "shebe-v0.5.7"

    def test_miss(self, tmp_path: Path) -> None:
        assert lookup_cached(tmp_path, V7) is None

    @posix_only
    def test_hit(self, tmp_path: Path) -> None:
        binary = fake_install(tmp_path, V7)
        cached = lookup_cached(tmp_path, V7)
        assert cached is not None
        assert cached.path == binary.resolve()
        assert cached.path.is_absolute()
        assert cached.version == V7

    @posix_only
    def test_not_executable_is_miss(self, tmp_path: Path) -> None:
        fake_install(tmp_path, V7, executable=False)
        assert lookup_cached(tmp_path, V7) is None

    def test_other_version_is_miss(self, tmp_path: Path) -> None:
        fake_install(tmp_path, V6)
        assert lookup_cached(tmp_path, V7) is None

    @posix_only
    def test_cached_versions(self, tmp_path: Path) -> None:
        fake_install(tmp_path, V7)
        fake_install(tmp_path, V6, executable=False)
        (tmp_path / "shebe-nightly").mkdir()
        (tmp_path / ".shebe-v0.5.7.abc.tmp").mkdir()
        (tmp_path / STATE_FILE).write_text("{}")

        found = cached_versions(tmp_path)

        assert [(c.version, c.executable) for c in found] == [(V6, False), (V7, True)]

    def test_cached_versions_missing_dir(self, tmp_path: Path) -> None:
        assert cached_versions(tmp_path / "nope") == []


class TestPrune:
    """Tests for prune()."""

    def test_prune_keeps_one(self, tmp_path: Path) -> None:
        fake_install(tmp_path, V6)
        fake_install(tmp_path, V7)

        result = prune(tmp_path, V7)

        assert result == Ok([tmp_path / "shebe-v0.5.6"])
        assert not (tmp_path / "shebe-v0.5.6").exists()
        assert (tmp_path / "shebe-v0.5.7" / "shebe-mcp").exists()

    def test_prune_nothing(self, tmp_path: Path) -> None:
        assert prune(tmp_path, V7) == Ok([])
