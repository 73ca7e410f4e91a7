"""Tests for shebe_fetch.release.model - Release Store records."""

from __future__ import annotations

from shebe_fetch.core.result import Err, Ok
from shebe_fetch.release.model import Release, ReleaseAsset, parse_release

URL = "https://github.com/rhobimd-oss/shebe/releases/download/v0.5.7"


class TestParseRelease:
    """Tests for parse_release()."""

    def test_valid(self) -> None:
        result = parse_release(
            {
                "tag_name": "v0.5.7",
                "assets": [
                    {
                        "name": "shebe-v0.5.7-darwin-aarch64.tar.gz",
                        "browser_download_url": f"{URL}/shebe-v0.5.7-darwin-aarch64.tar.gz",
                        "size": 1234,
                    }
                ],
            }
        )
        assert result == Ok(
            Release(
                tag="v0.5.7",
                assets=(
                    ReleaseAsset(
                        name="shebe-v0.5.7-darwin-aarch64.tar.gz",
                        download_url=f"{URL}/shebe-v0.5.7-darwin-aarch64.tar.gz",
                        size=1234,
                    ),
                ),
            )
        )

    def test_missing_tag(self) -> None:
        result = parse_release({"assets": []})
        assert isinstance(result, Err)
        assert "tag_name" in result.error

    def test_missing_assets(self) -> None:
        result = parse_release({"tag_name": "v0.5.7"})
        assert isinstance(result, Err)

    def test_invalid_assets_skipped(self) -> None:
        result = parse_release(
            {
                "tag_name": "v0.5.7",
                "assets": [
                    "not a dict",
                    {"name": "no-url", "size": 1},
                    {"name": "no-size", "browser_download_url": "u"},
                    {"name": "negative", "browser_download_url": "u", "size": -1},
                    {"name": "ok", "browser_download_url": "u", "size": 0},
                ],
            }
        )
        assert isinstance(result, Ok)
        assert result.value.asset_names == ("ok",)


class TestRelease:
    """Tests for Release lookups."""

    def _release(self) -> Release:
        return Release(
            tag="v0.5.7",
            assets=(
                ReleaseAsset("a.tar.gz", "u1", 1),
                ReleaseAsset("b.tar.gz", "u2", 2),
            ),
        )

    def test_asset_names(self) -> None:
        assert self._release().asset_names == ("a.tar.gz", "b.tar.gz")

    def test_find_asset_exact(self) -> None:
        release = self._release()
        assert release.find_asset("b.tar.gz") == ReleaseAsset("b.tar.gz", "u2", 2)
        assert release.find_asset("B.tar.gz") is None
        assert release.find_asset("b.tar") is None
