"""Naming-convention conformance against a live release.

The asset mapping encodes two conventions that have drifted across
published documentation: the leading 'v' of the tag inside asset names and
the '-musl' suffix on the Linux asset. This check compares a real release
with the mapping for every supported platform, and when an expected asset
is missing it looks for the known variants so the report names the drift
instead of just saying "not found".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from shebe_fetch.core.result import Err
from shebe_fetch.release.assets import (
    ASSET_PREFIX,
    SUPPORTED_TARGETS,
    AssetTarget,
    format_asset_name,
)
from shebe_fetch.release.model import Release
from shebe_fetch.release.version import parse_version

__all__ = [
    "CheckStatus",
    "ConformanceCheck",
    "ConformanceReport",
    "check_release",
    "drifted_assets",
]


class CheckStatus(Enum):
    """Status of a conformance check."""

    OK = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass(frozen=True, slots=True)
class ConformanceCheck:
    """Result of a single check.

    Attributes:
        name: What was checked (e.g. "asset darwin-aarch64")
        status: Outcome
        message: Human-readable result
        hint: What the drift looks like, when there is one
    """

    name: str
    status: CheckStatus
    message: str
    hint: str | None = None

    @classmethod
    def ok(cls, name: str, message: str) -> ConformanceCheck:
        return cls(name=name, status=CheckStatus.OK, message=message)

    @classmethod
    def warning(cls, name: str, message: str, hint: str | None = None) -> ConformanceCheck:
        return cls(name=name, status=CheckStatus.WARNING, message=message, hint=hint)

    @classmethod
    def error(cls, name: str, message: str, hint: str | None = None) -> ConformanceCheck:
        return cls(name=name, status=CheckStatus.ERROR, message=message, hint=hint)


def _empty_checks() -> list[ConformanceCheck]:
    return []


@dataclass
class ConformanceReport:
    """All checks run against one release."""

    tag: str
    checks: list[ConformanceCheck] = field(default_factory=_empty_checks)

    def has_errors(self) -> bool:
        return any(c.status == CheckStatus.ERROR for c in self.checks)

    def has_warnings(self) -> bool:
        return any(c.status == CheckStatus.WARNING for c in self.checks)


def _variants(tag: str, os_token: str, arch_token: str, libc_suffix: str) -> list[str]:
    """Plausible drifted spellings of an asset name."""
    bare = tag[1:] if tag.startswith("v") else tag
    candidates = [
        format_asset_name(tag, os_token, arch_token, ""),
        format_asset_name(tag, os_token, arch_token, "-musl"),
        format_asset_name(tag, os_token, arch_token, "-gnu"),
        format_asset_name(bare, os_token, arch_token, libc_suffix),
        format_asset_name(bare, os_token, arch_token, ""),
        f"{ASSET_PREFIX}-mcp-{tag}-{os_token}-{arch_token}{libc_suffix}.tar.gz",
    ]
    expected = format_asset_name(tag, os_token, arch_token, libc_suffix)
    return [c for c in candidates if c != expected]


def drifted_assets(release: Release, target: AssetTarget) -> tuple[str, ...]:
    """Assets of release that look like a drifted spelling of the target's name."""
    names = set(release.asset_names)
    variants = _variants(release.tag, target.os_token, target.arch_token, target.libc_suffix)
    return tuple(v for v in variants if v in names)


def check_release(release: Release) -> ConformanceReport:
    """Compare a release with the naming conventions the mapping assumes."""
    report = ConformanceReport(tag=release.tag)
    checks = report.checks

    version = parse_version(release.tag)
    if isinstance(version, Err):
        checks.append(
            ConformanceCheck.error(
                "tag",
                f"tag '{release.tag}' is not v<MAJOR>.<MINOR>.<PATCH>",
                "asset names are built from the tag verbatim",
            )
        )
    else:
        checks.append(ConformanceCheck.ok("tag", release.tag))

    if not release.assets:
        checks.append(ConformanceCheck.error("assets", f"release {release.tag} has no assets"))
        return report
    checks.append(ConformanceCheck.ok("assets", f"{len(release.assets)} assets"))

    names = set(release.asset_names)
    for target in SUPPORTED_TARGETS:
        label = f"asset {target.os_token}-{target.arch_token}"
        expected = format_asset_name(
            release.tag, target.os_token, target.arch_token, target.libc_suffix
        )
        if expected in names:
            checks.append(ConformanceCheck.ok(label, expected))
            continue

        drifted = drifted_assets(release, target)
        hint = (
            f"naming drift: found {', '.join(drifted)}"
            if drifted
            else f"available: {', '.join(sorted(names))}"
        )
        checks.append(ConformanceCheck.error(label, f"missing {expected}", hint))

    windows = sorted(n for n in names if "windows" in n.lower())
    if windows:
        checks.append(
            ConformanceCheck.warning(
                "windows",
                f"unexpected Windows asset: {', '.join(windows)}",
                "the mapping still rejects Windows",
            )
        )
    else:
        checks.append(ConformanceCheck.ok("windows", "no Windows asset"))

    linux_arm = sorted(
        n for n in names if "linux" in n.lower() and ("aarch64" in n or "arm64" in n)
    )
    if linux_arm:
        checks.append(
            ConformanceCheck.warning(
                "linux-arm",
                f"unexpected Linux ARM asset: {', '.join(linux_arm)}",
                "the mapping still rejects Linux ARM",
            )
        )
    else:
        checks.append(ConformanceCheck.ok("linux-arm", "no Linux ARM asset"))

    return report
