"""Release version tokens.

A release version is the forge tag verbatim (`v0.5.7`). It is only ever
used to build file names and to compare against what a binary reports;
ordering versions is the Release Store's business.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.release.errors import InvalidVersion

__all__ = ["ReleaseVersion", "parse_version", "VERSION_PATTERN"]

VERSION_PATTERN = re.compile(r"v[0-9]+\.[0-9]+\.[0-9]+")


@dataclass(frozen=True, slots=True)
class ReleaseVersion:
    """A validated `v<MAJOR>.<MINOR>.<PATCH>` tag."""

    tag: str

    def __post_init__(self) -> None:
        if not VERSION_PATTERN.fullmatch(self.tag):
            raise ValueError(f"invalid release version: {self.tag!r}")

    @property
    def number(self) -> str:
        """The tag without its leading 'v' (what `--version` prints)."""
        return self.tag[1:]

    @classmethod
    def parse(cls, value: str) -> Result[ReleaseVersion, InvalidVersion]:
        return parse_version(value)

    def __str__(self) -> str:
        return self.tag


def parse_version(value: str) -> Result[ReleaseVersion, InvalidVersion]:
    """Validate a version string.

    Surrounding whitespace is tolerated; anything else that is not exactly
    `v<digits>.<digits>.<digits>` is rejected, including a missing 'v' and
    pre-release suffixes.
    """
    candidate = value.strip()
    if not VERSION_PATTERN.fullmatch(candidate):
        return Err(InvalidVersion(value=value))
    return Ok(ReleaseVersion(tag=candidate))
