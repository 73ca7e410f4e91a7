"""Platform-to-asset mapping.

Release assets are named:

    shebe-{tag}-{os}-{arch}{libc_suffix}.tar.gz

- macOS arm64:   shebe-v0.5.7-darwin-aarch64.tar.gz
- macOS x86_64:  shebe-v0.5.7-darwin-x86_64.tar.gz
- Linux x86_64:  shebe-v0.5.7-linux-x86_64-musl.tar.gz

The Linux build is statically linked against musl, so it serves glibc and
musl hosts alike. Windows, Linux arm64 and 32-bit x86 have no asset and are
rejected rather than mapped to something that merely looks close.
"""

from __future__ import annotations

from dataclasses import dataclass

from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.platform.detection import Arch, Os, PlatformDescriptor
from shebe_fetch.release.errors import UnsupportedPlatform
from shebe_fetch.release.version import ReleaseVersion

__all__ = [
    "ASSET_PREFIX",
    "ARCHIVE_SUFFIX",
    "BINARY_NAME",
    "SUPPORTED_TARGETS",
    "AssetTarget",
    "asset_name",
    "format_asset_name",
    "install_dir_name",
    "resolve_target",
]

ASSET_PREFIX = "shebe"
ARCHIVE_SUFFIX = ".tar.gz"

# Executable expected at the archive root.
BINARY_NAME = "shebe-mcp"


@dataclass(frozen=True, slots=True)
class AssetTarget:
    """Naming tokens for one supported (os, arch) pair."""

    os: Os
    arch: Arch
    os_token: str
    arch_token: str
    libc_suffix: str = ""

    def asset_name(self, version: ReleaseVersion) -> str:
        return format_asset_name(version.tag, self.os_token, self.arch_token, self.libc_suffix)


SUPPORTED_TARGETS: tuple[AssetTarget, ...] = (
    AssetTarget(os=Os.MACOS, arch=Arch.ARM64, os_token="darwin", arch_token="aarch64"),
    AssetTarget(os=Os.MACOS, arch=Arch.X86_64, os_token="darwin", arch_token="x86_64"),
    AssetTarget(
        os=Os.LINUX,
        arch=Arch.X86_64,
        os_token="linux",
        arch_token="x86_64",
        libc_suffix="-musl",
    ),
)


def format_asset_name(tag: str, os_token: str, arch_token: str, libc_suffix: str = "") -> str:
    """Join naming tokens into an asset file name."""
    return f"{ASSET_PREFIX}-{tag}-{os_token}-{arch_token}{libc_suffix}{ARCHIVE_SUFFIX}"


def resolve_target(platform: PlatformDescriptor) -> Result[AssetTarget, UnsupportedPlatform]:
    """Find the naming tokens for a platform.

    Runs before any network access so unsupported hosts fail fast.
    """
    match platform.os:
        case Os.WINDOWS:
            return Err(UnsupportedPlatform(platform, "shebe does not support Windows"))
        case Os.OTHER:
            return Err(UnsupportedPlatform(platform, "unrecognized operating system"))
        case _:
            pass

    match platform.arch:
        case Arch.X86:
            return Err(UnsupportedPlatform(platform, "shebe does not support 32-bit x86"))
        case Arch.OTHER:
            return Err(UnsupportedPlatform(platform, "unrecognized CPU architecture"))
        case Arch.ARM64 if platform.os == Os.LINUX:
            return Err(UnsupportedPlatform(platform, "shebe does not support Linux ARM"))
        case _:
            pass

    for target in SUPPORTED_TARGETS:
        if target.os == platform.os and target.arch == platform.arch:
            return Ok(target)
    return Err(UnsupportedPlatform(platform, "no asset mapping"))


def asset_name(
    version: ReleaseVersion,
    platform: PlatformDescriptor,
) -> Result[str, UnsupportedPlatform]:
    """Get the release asset file name for a version and platform.

    Pure and deterministic: the same inputs always give the same name and
    nothing outside the arguments is consulted.
    """
    return resolve_target(platform).map(lambda target: target.asset_name(version))


def install_dir_name(version: ReleaseVersion) -> str:
    """Directory (under the data dir) holding one extracted version."""
    return f"{ASSET_PREFIX}-{version.tag}"
