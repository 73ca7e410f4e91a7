"""Cached binary state - which versions are extracted, which one is current.

Each version lives in its own directory, `{data_dir}/shebe-{tag}/`, so the
version of a cached binary is encoded in its path. `state.json` in the data
directory records the most recently acquired version for `where` and
`prune`.
"""

from __future__ import annotations

import json
import shutil
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path

from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.platform.files import atomic_write_text, is_executable
from shebe_fetch.release.assets import ASSET_PREFIX, BINARY_NAME, install_dir_name
from shebe_fetch.release.errors import InstallIOError
from shebe_fetch.release.version import ReleaseVersion, parse_version

__all__ = [
    "CachedBinary",
    "CachedBinaryState",
    "cached_versions",
    "get_current_version",
    "install_dir",
    "load_state",
    "lookup_cached",
    "prune",
    "record_version",
    "save_state",
]

STATE_FILE = "state.json"


@dataclass(frozen=True, slots=True)
class CachedBinaryState:
    """Recorded state of the current binary.

    Attributes:
        version: Release tag of the binary
        installed_at: ISO timestamp of installation
    """

    version: str
    installed_at: str

    @classmethod
    def now(cls, version: str) -> CachedBinaryState:
        """Create state with current timestamp."""
        return cls(version=version, installed_at=datetime.now().isoformat())


@dataclass(frozen=True, slots=True)
class CachedBinary:
    """An extracted binary found in the data directory."""

    path: Path
    version: ReleaseVersion
    executable: bool


def _state_file(data_dir: Path) -> Path:
    return data_dir / STATE_FILE


def install_dir(data_dir: Path, version: ReleaseVersion) -> Path:
    """Directory holding the extracted files of one version."""
    return data_dir / install_dir_name(version)


def load_state(data_dir: Path) -> dict[str, CachedBinaryState]:
    """Load binary state from disk.

    Returns:
        Dict mapping binary name to CachedBinaryState (empty if missing or unreadable)
    """
    state_path = _state_file(data_dir)
    if not state_path.exists():
        return {}

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
        return {name: CachedBinaryState(**entry) for name, entry in data.items()}
    except (json.JSONDecodeError, TypeError, KeyError, AttributeError, OSError):
        # Corrupted state file, start fresh
        return {}


def save_state(data_dir: Path, state: dict[str, CachedBinaryState]) -> None:
    """Save binary state to disk (atomic replace)."""
    data = {name: asdict(entry) for name, entry in state.items()}
    atomic_write_text(_state_file(data_dir), json.dumps(data, indent=2), encoding="utf-8")


def get_current_version(data_dir: Path) -> ReleaseVersion | None:
    """Version recorded by the last successful acquisition, if valid."""
    entry = load_state(data_dir).get(BINARY_NAME)
    if entry is None:
        return None
    parsed = parse_version(entry.version)
    if isinstance(parsed, Err):
        return None
    return parsed.value


def record_version(data_dir: Path, version: ReleaseVersion) -> None:
    """Mark version as the current binary."""
    state = load_state(data_dir)
    state[BINARY_NAME] = CachedBinaryState.now(version.tag)
    save_state(data_dir, state)


def lookup_cached(data_dir: Path, version: ReleaseVersion) -> CachedBinary | None:
    """Return the cached binary for version if it is present and executable.

    A binary at its final path is complete: publication moves it there last.
    """
    path = install_dir(data_dir, version) / BINARY_NAME
    if not is_executable(path):
        return None
    return CachedBinary(path=path.resolve(), version=version, executable=True)


def cached_versions(data_dir: Path) -> list[CachedBinary]:
    """List every version directory in data_dir, sorted by name.

    Directories whose binary is missing or not executable are listed with
    executable=False so `prune` can remove them.
    """
    if not data_dir.is_dir():
        return []

    prefix = f"{ASSET_PREFIX}-"
    found: list[CachedBinary] = []
    for entry in sorted(data_dir.iterdir()):
        if not entry.is_dir() or not entry.name.startswith(prefix):
            continue
        parsed = parse_version(entry.name.removeprefix(prefix))
        if isinstance(parsed, Err):
            continue
        binary = entry / BINARY_NAME
        found.append(
            CachedBinary(path=binary, version=parsed.value, executable=is_executable(binary))
        )
    return found


def prune(data_dir: Path, keep: ReleaseVersion) -> Result[list[Path], InstallIOError]:
    """Delete every cached version directory except keep's.

    Returns:
        Ok with the removed directories
    """
    removed: list[Path] = []
    for cached in cached_versions(data_dir):
        if cached.version == keep:
            continue
        directory = cached.path.parent
        try:
            shutil.rmtree(directory)
        except OSError as e:
            return Err(InstallIOError(path=directory, detail=str(e)))
        removed.append(directory)
    return Ok(removed)
