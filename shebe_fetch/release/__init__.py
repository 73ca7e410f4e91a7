"""Release naming, records and the Release Store client."""

from .assets import BINARY_NAME, SUPPORTED_TARGETS, asset_name, resolve_target
from .errors import (
    AcquireError,
    Cancelled,
    CorruptArchive,
    InstallIOError,
    InvalidVersion,
    MalformedArchive,
    NetworkError,
    RateLimited,
    ReleaseNotFound,
    UnsupportedPlatform,
)
from .model import Release, ReleaseAsset
from .store import ReleaseStore
from .version import ReleaseVersion, parse_version

__all__ = [
    # assets
    "BINARY_NAME",
    "SUPPORTED_TARGETS",
    "asset_name",
    "resolve_target",
    # errors
    "AcquireError",
    "Cancelled",
    "CorruptArchive",
    "InstallIOError",
    "InvalidVersion",
    "MalformedArchive",
    "NetworkError",
    "RateLimited",
    "ReleaseNotFound",
    "UnsupportedPlatform",
    # model
    "Release",
    "ReleaseAsset",
    # store
    "ReleaseStore",
    # version
    "ReleaseVersion",
    "parse_version",
]
