"""Acquisition pipeline: from a platform and a version to an executable path.

States:
    IDLE -> RESOLVING -> DOWNLOADING -> VERIFYING -> EXTRACTING -> READY
    any state -> FAILED

A cached binary short-circuits RESOLVING straight to READY. For a pinned
version this happens before any network call; for the latest release it
costs the one (memoized) release lookup.

Every attempt works in its own staging directory inside the data directory
and publishes with os.replace, so concurrent acquisitions never expose a
half-written binary. Within one process the EXTRACTING step is additionally
serialized per version directory.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from shebe_fetch.core.config import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_SECONDS,
    NetworkConfig,
)
from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.fetch.download import Downloader, DownloadResult, verify_download
from shebe_fetch.fetch.http import CANCELLED_MESSAGE
from shebe_fetch.fetch.installer import Installer
from shebe_fetch.fetch.state import install_dir, lookup_cached, record_version
from shebe_fetch.output.console import Style
from shebe_fetch.platform.detection import PlatformDescriptor, detect_platform
from shebe_fetch.platform.files import staging_dir
from shebe_fetch.release.assets import (
    BINARY_NAME,
    AssetTarget,
    install_dir_name,
    resolve_target,
)
from shebe_fetch.release.conformance import drifted_assets
from shebe_fetch.release.errors import (
    AcquireError,
    Cancelled,
    InstallIOError,
    InvalidVersion,
    NetworkError,
    ReleaseNotFound,
    is_download_fault,
)
from shebe_fetch.release.model import Release, ReleaseAsset
from shebe_fetch.release.store import ReleaseStore, classify_http_error
from shebe_fetch.release.version import ReleaseVersion, parse_version

if TYPE_CHECKING:
    from shebe_fetch.fetch.http import HttpClient
    from shebe_fetch.output.console import ConsoleProtocol

__all__ = [
    "AcquireState",
    "AcquiredBinary",
    "Acquirer",
    "RetryPolicy",
]


class AcquireState(Enum):
    """Pipeline state."""

    IDLE = auto()
    RESOLVING = auto()
    DOWNLOADING = auto()
    VERIFYING = auto()
    EXTRACTING = auto()
    READY = auto()
    FAILED = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class AcquiredBinary:
    """A ready-to-launch binary.

    Attributes:
        path: Absolute path of the executable
        version: Release it was extracted from
        from_cache: True if no download was needed
    """

    path: Path
    version: ReleaseVersion
    from_cache: bool


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry policy for transient network failures.

    attempts counts the first try: attempts=3 means up to two retries, the
    first after `delay` seconds, then `delay * backoff`, and so on.
    """

    attempts: int = DEFAULT_RETRY_ATTEMPTS
    delay: float = DEFAULT_RETRY_DELAY_SECONDS
    backoff: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        return self.delay * self.backoff ** (attempt - 1)

    @classmethod
    def from_config(cls, network: NetworkConfig) -> RetryPolicy:
        return cls(attempts=network.retries, delay=network.retry_delay)


_install_locks: dict[Path, threading.Lock] = {}
_install_locks_guard = threading.Lock()


def _install_lock(path: Path) -> threading.Lock:
    """Process-wide lock for one version directory."""
    key = path.resolve()
    with _install_locks_guard:
        return _install_locks.setdefault(key, threading.Lock())


class Acquirer:
    """Runs the acquisition pipeline.

    Usage:
        acquirer = Acquirer(store=store, http=http, data_dir=data_dir, console=console)
        match acquirer.acquire():
            case Ok(binary):
                launch = launch_command(binary)
            case Err(error):
                print_acquire_error(error, console)
    """

    def __init__(
        self,
        *,
        store: ReleaseStore,
        http: HttpClient,
        data_dir: Path,
        console: ConsoleProtocol | None = None,
        platform_detector: Callable[[], PlatformDescriptor] = detect_platform,
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_state: Callable[[AcquireState], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self._store = store
        self._downloader = Downloader(http)
        self._installer = Installer()
        self._data_dir = data_dir
        self._console = console
        self._platform_detector = platform_detector
        self._retry = retry or RetryPolicy()
        self._sleep = sleep
        self._on_state = on_state
        self._cancel = cancel
        self._state = AcquireState.IDLE

    @property
    def state(self) -> AcquireState:
        return self._state

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def acquire(self, version: str | None = None) -> Result[AcquiredBinary, AcquireError]:
        """Produce an executable for version (a tag), or the latest release.

        Args:
            version: Pinned release tag (v<MAJOR>.<MINOR>.<PATCH>), None for latest

        Returns:
            Ok(AcquiredBinary) in READY, Err(AcquireError) in FAILED
        """
        self._state = AcquireState.IDLE
        result = self._acquire(version)
        match result:
            case Ok(binary):
                self._transition(AcquireState.READY)
                source = "cached" if binary.from_cache else "installed"
                self._say(f"{BINARY_NAME} {binary.version} {source}: {binary.path}", Style.DIM)
            case Err(_):
                self._transition(AcquireState.FAILED)
        return result

    # -------------------------------------------------------------------------
    # Pipeline steps
    # -------------------------------------------------------------------------

    def _acquire(self, version: str | None) -> Result[AcquiredBinary, AcquireError]:
        self._transition(AcquireState.RESOLVING)

        platform = self._platform_detector()
        target_result = resolve_target(platform)
        if isinstance(target_result, Err):
            return target_result
        target = target_result.value

        if version is not None:
            pinned_result = parse_version(version)
            if isinstance(pinned_result, Err):
                return pinned_result
            pinned = pinned_result.value

            cached = lookup_cached(self._data_dir, pinned)
            if cached is not None:
                return Ok(AcquiredBinary(path=cached.path, version=pinned, from_cache=True))

            if self._cancelled():
                return Err(Cancelled(state=str(self._state)))
            release_result = self._retrying(lambda: self._store.release_for(pinned.tag))
        else:
            if self._cancelled():
                return Err(Cancelled(state=str(self._state)))
            release_result = self._retrying(self._store.latest_release)

        if isinstance(release_result, Err):
            return release_result
        release = release_result.value

        tag_result = parse_version(release.tag)
        if isinstance(tag_result, Err):
            return Err(InvalidVersion(value=release.tag))
        resolved = tag_result.value

        cached = lookup_cached(self._data_dir, resolved)
        if cached is not None:
            return Ok(AcquiredBinary(path=cached.path, version=resolved, from_cache=True))

        name = target.asset_name(resolved)
        asset = release.find_asset(name)
        if asset is None:
            return Err(self._asset_not_found(release, target, name))

        return self._install(asset, resolved)

    def _install(
        self, asset: ReleaseAsset, version: ReleaseVersion
    ) -> Result[AcquiredBinary, AcquireError]:
        """Download, verify, extract and publish, re-downloading once on a bad archive."""
        fresh_downloads_left = 1
        while True:
            result = self._install_once(asset, version)
            if (
                isinstance(result, Err)
                and is_download_fault(result.error)
                and fresh_downloads_left > 0
                and not self._cancelled()
            ):
                fresh_downloads_left -= 1
                self._say(f"{result.error.message}; downloading again", Style.WARNING)
                continue
            return result

    def _install_once(
        self, asset: ReleaseAsset, version: ReleaseVersion
    ) -> Result[AcquiredBinary, AcquireError]:
        final_dir = install_dir(self._data_dir, version)
        try:
            with staging_dir(self._data_dir, install_dir_name(version)) as staging:
                download_result = self._download(asset, staging / asset.name, version)
                if isinstance(download_result, Err):
                    return download_result

                self._transition(AcquireState.VERIFYING)
                verified = verify_download(download_result.value, asset)
                if isinstance(verified, Err):
                    return verified
                if self._cancelled():
                    return Err(Cancelled(state=str(self._state)))

                self._transition(AcquireState.EXTRACTING)
                with _install_lock(final_dir):
                    # Another caller may have published while we downloaded.
                    cached = lookup_cached(self._data_dir, version)
                    if cached is not None:
                        return Ok(
                            AcquiredBinary(path=cached.path, version=version, from_cache=True)
                        )

                    extracted = self._installer.extract(
                        verified.value.path, staging / "root", binary_name=BINARY_NAME
                    )
                    if isinstance(extracted, Err):
                        return extracted
                    if extracted.value.mode_fixed:
                        self._say(f"{BINARY_NAME}: executable bit was missing, set it", Style.DIM)
                    if self._cancelled():
                        return Err(Cancelled(state=str(self._state)))

                    published = self._installer.publish(extracted.value, final_dir)
                    if isinstance(published, Err):
                        return published

                    record_version(self._data_dir, version)

                return Ok(AcquiredBinary(path=published.value, version=version, from_cache=False))
        except OSError as e:
            return Err(InstallIOError(path=self._data_dir, detail=str(e)))

    def _download(
        self, asset: ReleaseAsset, dest: Path, version: ReleaseVersion
    ) -> Result[DownloadResult, AcquireError]:
        self._transition(AcquireState.DOWNLOADING)
        self._say(f"download {asset.name} ({asset.size} bytes)", Style.DIM)

        def attempt() -> Result[DownloadResult, AcquireError]:
            if self._cancelled():
                return Err(Cancelled(state=str(self._state)))
            result = self._downloader.download(asset.download_url, dest, cancel=self._cancel)
            if isinstance(result, Ok):
                return result
            if result.error.message == CANCELLED_MESSAGE:
                return Err(Cancelled(state=str(self._state)))
            return Err(
                classify_http_error(
                    result.error,
                    repo=self._store.repo,
                    tag=version.tag,
                    asset=asset.name,
                    authenticated=self._store.authenticated,
                )
            )

        return self._retrying(attempt)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _retrying[T](
        self, call: Callable[[], Result[T, AcquireError]]
    ) -> Result[T, AcquireError]:
        """Run call, retrying NetworkError with exponential backoff."""
        attempt = 1
        while True:
            result = call()
            if not isinstance(result, Err) or not isinstance(result.error, NetworkError):
                return result
            if attempt >= self._retry.attempts or self._cancelled():
                return result

            delay = self._retry.delay_for(attempt)
            self._say(
                f"{result.error.message}; retry {attempt}/{self._retry.attempts - 1} "
                f"in {delay:.1f}s",
                Style.WARNING,
            )
            self._sleep(delay)
            attempt += 1

    def _asset_not_found(
        self, release: Release, target: AssetTarget, name: str
    ) -> ReleaseNotFound:
        return ReleaseNotFound(
            repo=self._store.repo,
            tag=release.tag,
            asset=name,
            available=release.asset_names,
            drifted=drifted_assets(release, target),
        )

    def _cancelled(self) -> bool:
        return self._cancel is not None and self._cancel.is_set()

    def _transition(self, state: AcquireState) -> None:
        self._state = state
        if self._on_state is not None:
            self._on_state(state)

    def _say(self, message: str, style: Style) -> None:
        if self._console is not None:
            self._console.print(message, style)
