"""Release asset downloader with size verification.

This module provides a Downloader that:
- Streams an asset to a caller-owned staging path
- Removes partial files when the transfer fails
- Verifies the byte count against the Release Store's asset size
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.fetch.http import HttpError
from shebe_fetch.release.errors import CorruptArchive

if TYPE_CHECKING:
    from collections.abc import Callable

    from shebe_fetch.fetch.http import HttpClient
    from shebe_fetch.release.model import ReleaseAsset

__all__ = ["Downloader", "DownloadResult", "verify_download"]


@dataclass(frozen=True, slots=True)
class DownloadResult:
    """Result of a download operation.

    Attributes:
        path: Path to the downloaded file
        size: Bytes on disk
        content_length: Content-Length the server announced, if any
    """

    path: Path
    size: int
    content_length: int | None = None


class Downloader:
    """Streams release assets to disk.

    Usage:
        downloader = Downloader(http)
        result = downloader.download(asset.download_url, staging / asset.name)
        if is_ok(result):
            verified = verify_download(result.value, asset)
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    def download(
        self,
        url: str,
        dest: Path,
        *,
        progress: Callable[[int, int], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> Result[DownloadResult, HttpError]:
        """Download url to dest.

        Args:
            url: URL to download
            dest: Destination file (its directory is created if needed)
            progress: Optional callback(downloaded_bytes, total_bytes)
            cancel: Optional event that aborts the transfer when set

        Returns:
            Ok with DownloadResult, or Err with HttpError
        """
        dest.parent.mkdir(parents=True, exist_ok=True)

        result = self._http.download(url, dest, progress=progress, cancel=cancel)

        if isinstance(result, Err):
            dest.unlink(missing_ok=True)
            return result

        # Trust the filesystem over the client's own count.
        size = dest.stat().st_size
        return Ok(
            DownloadResult(path=dest, size=size, content_length=result.value.content_length)
        )


def verify_download(
    result: DownloadResult,
    asset: ReleaseAsset,
) -> Result[DownloadResult, CorruptArchive]:
    """Check a download against the sizes the server reported.

    Both the asset size from the release record and, when sent, the
    Content-Length of the transfer must match the bytes on disk.
    """
    if result.size != asset.size:
        return Err(
            CorruptArchive(
                asset=asset.name,
                detail="size differs from release record",
                expected=asset.size,
                actual=result.size,
            )
        )
    if result.content_length is not None and result.content_length != result.size:
        return Err(
            CorruptArchive(
                asset=asset.name,
                detail="size differs from Content-Length",
                expected=result.content_length,
                actual=result.size,
            )
        )
    return Ok(result)
