"""Filesystem helpers for publishing files atomically."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

__all__ = [
    "atomic_write_text",
    "ensure_executable",
    "is_executable",
    "staging_dir",
]

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


@contextmanager
def staging_dir(parent: Path, prefix: str) -> Iterator[Path]:
    """Yield a fresh private directory under parent, removed on exit.

    The directory lives on the same filesystem as its final destination so
    files can be published from it with os.replace. It is removed whether
    the block finishes, fails or is interrupted.
    """
    parent.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=f".{prefix}.", suffix=".tmp", dir=str(parent)))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def is_executable(path: Path) -> bool:
    """True if path is a regular file with any execute bit set."""
    try:
        st = path.stat()
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and bool(st.st_mode & _EXEC_BITS)


def ensure_executable(path: Path) -> bool:
    """Set the execute bits on path if missing.

    Returns:
        True if the mode was changed, False if it was already executable
    """
    mode = path.stat().st_mode
    if mode & stat.S_IXUSR:
        return False
    path.chmod(stat.S_IMODE(mode) | _EXEC_BITS | stat.S_IRUSR)
    return True
