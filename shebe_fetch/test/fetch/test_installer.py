"""Tests for fetch/installer.py - archive extraction and publication."""

import io
import os
import stat
import sys
import tarfile
from pathlib import Path

import pytest

from shebe_fetch.core.result import Err, Ok
from shebe_fetch.fetch.installer import Installer
from shebe_fetch.release.errors import CorruptArchive, MalformedArchive

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")

ARCHIVE = "shebe-v0.5.7-darwin-aarch64.tar.gz"

# =============================================================================
# Test fixtures for creating archives
# =============================================================================


def create_tar_gz(path: Path, files: dict[str, tuple[bytes, int]]) -> None:
    """Create a .tar.gz archive.

    Args:
        path: Path to create archive at
        files: Dict of member name -> (content, mode)
    """
    with tarfile.open(path, "w:gz") as tar:
        for name, (content, mode) in files.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(content)
            info.mode = mode
            tar.addfile(info, io.BytesIO(content))


def release_archive(path: Path, *, binary_mode: int = 0o755) -> Path:
    archive = path / ARCHIVE
    create_tar_gz(
        archive,
        {
            "shebe-mcp": (b"#!/bin/sh\necho mcp\n", binary_mode),
            "shebe": (b"#!/bin/sh\necho shebe 0.5.7\n", 0o755),
            "README.md": (b"readme", 0o644),
        },
    )
    return archive


# =============================================================================
# Extraction
# =============================================================================


class TestExtract:
    """Tests for Installer.extract()."""

    def test_valid_archive(self, tmp_path: Path) -> None:
        archive = release_archive(tmp_path)
        dest = tmp_path / "root"

        result = Installer().extract(archive, dest, binary_name="shebe-mcp")

        assert isinstance(result, Ok)
        assert result.value.binary == dest / "shebe-mcp"
        assert result.value.files_count == 3
        assert set(result.value.entries) == {"shebe-mcp", "shebe", "README.md"}
        assert result.value.mode_fixed is False
        assert (dest / "README.md").read_bytes() == b"readme"

    @posix_only
    def test_missing_exec_bit_is_set(self, tmp_path: Path) -> None:
        archive = release_archive(tmp_path, binary_mode=0o644)

        result = Installer().extract(archive, tmp_path / "root", binary_name="shebe-mcp")

        assert isinstance(result, Ok)
        assert result.value.mode_fixed is True
        assert os.stat(result.value.binary).st_mode & stat.S_IXUSR

    def test_nested_binary_is_malformed(self, tmp_path: Path) -> None:
        archive = tmp_path / ARCHIVE
        create_tar_gz(archive, {"shebe-v0.5.7/shebe-mcp": (b"x", 0o755)})

        result = Installer().extract(archive, tmp_path / "root", binary_name="shebe-mcp")

        assert isinstance(result, Err)
        assert isinstance(result.error, MalformedArchive)
        assert "nested" in result.error.detail
        assert result.error.entries == ("shebe-v0.5.7/shebe-mcp",)

    def test_missing_binary_is_malformed(self, tmp_path: Path) -> None:
        archive = tmp_path / ARCHIVE
        create_tar_gz(archive, {"shebe": (b"x", 0o755)})

        result = Installer().extract(archive, tmp_path / "root", binary_name="shebe-mcp")

        assert isinstance(result, Err)
        assert isinstance(result.error, MalformedArchive)
        assert result.error.detail == "executable not found at archive root"

    def test_binary_as_directory_is_malformed(self, tmp_path: Path) -> None:
        archive = tmp_path / ARCHIVE
        with tarfile.open(archive, "w:gz") as tar:
            info = tarfile.TarInfo(name="shebe-mcp")
            info.type = tarfile.DIRTYPE
            tar.addfile(info)

        result = Installer().extract(archive, tmp_path / "root", binary_name="shebe-mcp")

        assert isinstance(result, Err)
        assert isinstance(result.error, MalformedArchive)

    def test_truncated_archive_is_corrupt(self, tmp_path: Path) -> None:
        archive = release_archive(tmp_path)
        data = archive.read_bytes()
        archive.write_bytes(data[: len(data) // 2])

        result = Installer().extract(archive, tmp_path / "root", binary_name="shebe-mcp")

        assert isinstance(result, Err)
        assert isinstance(result.error, CorruptArchive)

    def test_garbage_is_corrupt(self, tmp_path: Path) -> None:
        archive = tmp_path / ARCHIVE
        archive.write_bytes(b"<html>not an archive</html>")

        result = Installer().extract(archive, tmp_path / "root", binary_name="shebe-mcp")

        assert isinstance(result, Err)
        assert isinstance(result.error, CorruptArchive)

    def test_unsupported_format(self, tmp_path: Path) -> None:
        archive = tmp_path / "shebe-v0.5.7-windows-x86_64.zip"
        archive.write_bytes(b"PK")

        result = Installer().extract(archive, tmp_path / "root", binary_name="shebe-mcp")

        assert isinstance(result, Err)
        assert isinstance(result.error, MalformedArchive)
        assert "unsupported archive format" in result.error.detail

    def test_traversal_entries_skipped(self, tmp_path: Path) -> None:
        archive = tmp_path / ARCHIVE
        create_tar_gz(
            archive,
            {
                "../escape": (b"evil", 0o644),
                "/abs": (b"evil", 0o644),
                "shebe-mcp": (b"x", 0o755),
            },
        )
        dest = tmp_path / "root"

        result = Installer().extract(archive, dest, binary_name="shebe-mcp")

        assert isinstance(result, Ok)
        assert result.value.files_count == 1
        assert not (tmp_path / "escape").exists()
        assert sorted(p.name for p in dest.iterdir()) == ["shebe-mcp"]


# =============================================================================
# Publication
# =============================================================================


class TestPublish:
    """Tests for Installer.publish()."""

    def test_publish_moves_files(self, tmp_path: Path) -> None:
        installer = Installer()
        extracted = installer.extract(
            release_archive(tmp_path), tmp_path / "root", binary_name="shebe-mcp"
        )
        assert isinstance(extracted, Ok)
        final_dir = tmp_path / "shebe-v0.5.7"

        result = installer.publish(extracted.value, final_dir)

        assert result == Ok((final_dir / "shebe-mcp").resolve())
        assert sorted(p.name for p in final_dir.iterdir()) == ["README.md", "shebe", "shebe-mcp"]
        assert list((tmp_path / "root").iterdir()) == []

    def test_publish_replaces_existing(self, tmp_path: Path) -> None:
        installer = Installer()
        final_dir = tmp_path / "shebe-v0.5.7"
        final_dir.mkdir()
        (final_dir / "shebe-mcp").write_bytes(b"old")
        extracted = installer.extract(
            release_archive(tmp_path), tmp_path / "root", binary_name="shebe-mcp"
        )
        assert isinstance(extracted, Ok)

        result = installer.publish(extracted.value, final_dir)

        assert isinstance(result, Ok)
        assert (final_dir / "shebe-mcp").read_bytes() == b"#!/bin/sh\necho mcp\n"
