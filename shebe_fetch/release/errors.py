from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shebe_fetch.platform.detection import PlatformDescriptor

TOKEN_HINT = "set GITHUB_TOKEN to raise the GitHub API rate limit"


@dataclass(frozen=True, slots=True)
class UnsupportedPlatform:
    platform: PlatformDescriptor
    reason: str

    @property
    def message(self) -> str:
        return f"shebe has no release asset for {self.platform}: {self.reason}"

    @property
    def hint(self) -> str | None:
        return "supported: darwin-aarch64, darwin-x86_64, linux-x86_64"


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    value: str

    @property
    def message(self) -> str:
        return f"invalid release version {self.value!r}: expected v<MAJOR>.<MINOR>.<PATCH>"

    @property
    def hint(self) -> str | None:
        return "example: v0.5.7"


@dataclass(frozen=True, slots=True)
class ReleaseNotFound:
    repo: str
    tag: str | None
    asset: str | None = None
    available: tuple[str, ...] = ()
    status: int = 0
    drifted: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        release = self.tag or "latest release"
        if self.asset:
            return f"no release asset matching '{self.asset}' in {self.repo} {release}"
        status = f" (HTTP {self.status})" if self.status else ""
        return f"{release} not found in {self.repo}{status}"

    @property
    def hint(self) -> str | None:
        if self.drifted:
            return f"naming drift: found {', '.join(self.drifted)}"
        if self.available:
            return f"available assets: {', '.join(self.available)}"
        if self.asset:
            return "the release has no assets; it may still be uploading"
        return None


@dataclass(frozen=True, slots=True)
class NetworkError:
    url: str
    status: int
    detail: str
    asset: str | None = None

    @property
    def message(self) -> str:
        what = f"'{self.asset}'" if self.asset else self.url
        if self.status:
            return f"request for {what} failed: HTTP {self.status} {self.detail}"
        return f"request for {what} failed: {self.detail}"

    @property
    def hint(self) -> str | None:
        return "transient failure; retry later"


@dataclass(frozen=True, slots=True)
class RateLimited:
    url: str
    reset_at: int | None = None
    authenticated: bool = False
    status: int = 403

    @property
    def message(self) -> str:
        return f"GitHub API rate limit exceeded (HTTP {self.status}) for {self.url}"

    @property
    def hint(self) -> str | None:
        when = f" after epoch {self.reset_at}" if self.reset_at else " later"
        if self.authenticated:
            return f"retry{when}"
        return f"retry{when}, or {TOKEN_HINT}"


@dataclass(frozen=True, slots=True)
class CorruptArchive:
    asset: str
    detail: str
    expected: int | None = None
    actual: int | None = None

    @property
    def message(self) -> str:
        if self.expected is not None and self.actual is not None:
            return (
                f"download of '{self.asset}' is corrupt: "
                f"got {self.actual} bytes, expected {self.expected} ({self.detail})"
            )
        return f"download of '{self.asset}' is corrupt: {self.detail}"

    @property
    def hint(self) -> str | None:
        return "retry the download; report it if it keeps failing"


@dataclass(frozen=True, slots=True)
class MalformedArchive:
    asset: str
    binary: str
    entries: tuple[str, ...] = ()
    detail: str = "executable not found at archive root"

    @property
    def message(self) -> str:
        return f"'{self.asset}' is malformed: {self.detail} ('{self.binary}')"

    @property
    def hint(self) -> str | None:
        if self.entries:
            shown = ", ".join(self.entries[:10])
            more = f" (+{len(self.entries) - 10} more)" if len(self.entries) > 10 else ""
            return f"archive entries: {shown}{more}"
        return "archive is empty"


@dataclass(frozen=True, slots=True)
class Cancelled:
    state: str

    @property
    def message(self) -> str:
        return f"acquisition cancelled while {self.state}"

    @property
    def hint(self) -> str | None:
        return None


@dataclass(frozen=True, slots=True)
class InstallIOError:
    path: Path
    detail: str

    @property
    def message(self) -> str:
        return f"cannot write {self.path}: {self.detail}"

    @property
    def hint(self) -> str | None:
        return "check permissions of the data directory (--data-dir)"


AcquireError = (
    UnsupportedPlatform
    | InvalidVersion
    | ReleaseNotFound
    | NetworkError
    | RateLimited
    | CorruptArchive
    | MalformedArchive
    | Cancelled
    | InstallIOError
)


def is_transient(error: AcquireError) -> bool:
    """True for failures worth retrying after a delay."""
    return isinstance(error, (NetworkError, RateLimited))


def is_download_fault(error: AcquireError) -> bool:
    """True for failures a single fresh download may fix."""
    return isinstance(error, (CorruptArchive, MalformedArchive))
