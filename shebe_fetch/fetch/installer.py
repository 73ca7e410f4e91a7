"""Archive extraction and installation.

This module provides an Installer that:
- Extracts .tar.gz release archives into a staging directory
- Enforces the layout contract (executable at the archive root)
- Sets the executable bit when the archive did not preserve it
- Publishes extracted files into the version directory with os.replace,
  executable last, so a present binary always means a complete install
"""

from __future__ import annotations

import contextlib
import gzip
import os
import shutil
import tarfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.platform.files import ensure_executable
from shebe_fetch.release.errors import CorruptArchive, InstallIOError, MalformedArchive

__all__ = ["Installer", "InstallResult", "ExtractError"]

ExtractError = CorruptArchive | MalformedArchive | InstallIOError


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Result of an extraction.

    Attributes:
        root: Directory the archive was extracted into
        binary: Path of the executable inside root
        files_count: Number of regular files extracted
        entries: Every member name seen in the archive
        mode_fixed: True if the executable bit had to be set by us
    """

    root: Path
    binary: Path
    files_count: int
    entries: tuple[str, ...]
    mode_fixed: bool


class Installer:
    """Release archive extractor.

    Usage:
        installer = Installer()
        result = installer.extract(archive, staging / "root", binary_name="shebe-mcp")
        if is_ok(result):
            installer.publish(result.value, install_dir)
    """

    def _safe_relative_path(self, member_name: str) -> Path | None:
        """Return a sanitized relative extraction path, or None if unsafe."""
        normalized = member_name.replace("\\", "/")
        if normalized.startswith("/"):
            return None

        parts = PurePosixPath(normalized).parts
        if not parts:
            return None
        if any(part in {"", ".", ".."} for part in parts):
            return None
        if parts[0].endswith(":"):
            return None

        return Path(*parts)

    def _is_within_root(self, root: Path, target: Path) -> bool:
        """Check whether target resolves under root."""
        try:
            return target.resolve().is_relative_to(root.resolve())
        except OSError:
            return False

    def extract(
        self,
        archive: Path,
        dest: Path,
        *,
        binary_name: str,
    ) -> Result[InstallResult, ExtractError]:
        """Extract a .tar.gz archive into dest and check its layout.

        Only regular files are extracted; links, devices and entries that
        would escape dest are skipped.

        Args:
            archive: Downloaded archive
            dest: Empty (or missing) staging directory
            binary_name: Executable required at the archive root

        Returns:
            Ok with InstallResult, or Err with CorruptArchive (undecodable
            stream), MalformedArchive (layout violation) or InstallIOError
        """
        asset = archive.name
        if not asset.lower().endswith((".tar.gz", ".tgz")):
            return Err(
                MalformedArchive(
                    asset=asset,
                    binary=binary_name,
                    detail=f"unsupported archive format: {archive.suffix}",
                )
            )

        entries: list[str] = []
        files_count = 0
        binary_is_file = False

        try:
            dest.mkdir(parents=True, exist_ok=True)
            dest_root = dest.resolve()

            with tarfile.open(archive, "r:gz") as tar:
                for member in tar:
                    entries.append(member.name)
                    if member.isdir() or not member.isreg():
                        continue

                    rel_path = self._safe_relative_path(member.name)
                    if rel_path is None:
                        continue

                    full_path = dest / rel_path
                    if not self._is_within_root(dest_root, full_path):
                        continue

                    src = tar.extractfile(member)
                    if src is None:
                        continue

                    full_path.parent.mkdir(parents=True, exist_ok=True)
                    with src, open(full_path, "wb") as dst:
                        shutil.copyfileobj(src, dst)

                    mode = member.mode & 0o777
                    if mode:
                        with contextlib.suppress(OSError):
                            os.chmod(full_path, mode)

                    if rel_path == Path(binary_name):
                        binary_is_file = True
                    files_count += 1

        except (tarfile.TarError, gzip.BadGzipFile, EOFError, zlib.error) as e:
            return Err(CorruptArchive(asset=asset, detail=f"tar extraction failed: {e}"))
        except OSError as e:
            return Err(InstallIOError(path=dest, detail=str(e)))

        if not binary_is_file:
            nested = any(PurePosixPath(name).name == binary_name for name in entries)
            detail = (
                "executable is nested in a directory, expected at archive root"
                if nested
                else "executable not found at archive root"
            )
            return Err(
                MalformedArchive(
                    asset=asset,
                    binary=binary_name,
                    entries=tuple(entries),
                    detail=detail,
                )
            )

        binary = dest / binary_name
        try:
            mode_fixed = ensure_executable(binary)
        except OSError as e:
            return Err(InstallIOError(path=binary, detail=str(e)))

        return Ok(
            InstallResult(
                root=dest,
                binary=binary,
                files_count=files_count,
                entries=tuple(entries),
                mode_fixed=mode_fixed,
            )
        )

    def publish(self, extracted: InstallResult, install_dir: Path) -> Result[Path, InstallIOError]:
        """Move the archive's top-level files into install_dir.

        Each file is moved with os.replace (atomic on one filesystem). The
        executable goes last, so readers that find it at its final path
        also find its siblings.

        Returns:
            Ok with the absolute final path of the executable
        """
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
            for path in sorted(extracted.root.iterdir()):
                if path == extracted.binary or not path.is_file():
                    continue
                os.replace(path, install_dir / path.name)
            final = install_dir / extracted.binary.name
            os.replace(extracted.binary, final)
        except OSError as e:
            return Err(InstallIOError(path=install_dir, detail=str(e)))
        return Ok(final.resolve())
