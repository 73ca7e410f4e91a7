"""Release Store records.

Parsed from the GitHub Releases API:

    {"tag_name": "v0.5.7",
     "assets": [{"name": "...", "browser_download_url": "...", "size": 123}, ...]}
"""

from __future__ import annotations

from dataclasses import dataclass

from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.core.structured import as_str_dict, get_int, get_list, get_str

__all__ = ["Release", "ReleaseAsset", "parse_release"]


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    """A downloadable file attached to a release.

    Attributes:
        name: Asset file name
        download_url: Direct download URL
        size: Size in bytes as reported by the Release Store
    """

    name: str
    download_url: str
    size: int


@dataclass(frozen=True, slots=True)
class Release:
    """A release: its tag and its assets."""

    tag: str
    assets: tuple[ReleaseAsset, ...]

    @property
    def asset_names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.assets)

    def find_asset(self, name: str) -> ReleaseAsset | None:
        """Exact-name lookup; no fuzzy matching."""
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None


def parse_release(data: dict[str, object]) -> Result[Release, str]:
    """Validate a release record.

    Assets with a missing name, URL or size are skipped; a record without a
    tag is rejected.

    Returns:
        Ok with Release, or Err with a description of what is missing
    """
    tag = get_str(data, "tag_name")
    if tag is None:
        return Err("Missing tag_name in response")

    raw_assets = get_list(data, "assets")
    if raw_assets is None:
        return Err("Missing assets list in response")

    assets: list[ReleaseAsset] = []
    for raw in raw_assets:
        entry = as_str_dict(raw)
        if entry is None:
            continue
        name = get_str(entry, "name")
        url = get_str(entry, "browser_download_url")
        size = get_int(entry, "size")
        if name is None or url is None or size is None or size < 0:
            continue
        assets.append(ReleaseAsset(name=name, download_url=url, size=size))

    return Ok(Release(tag=tag, assets=tuple(assets)))
