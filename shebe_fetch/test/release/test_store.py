"""Tests for shebe_fetch.release.store - Release Store client."""

from __future__ import annotations

import threading

import pytest

from shebe_fetch.core.result import Err, Ok
from shebe_fetch.fetch.http import HttpError, MockHttpClient
from shebe_fetch.release.errors import NetworkError, RateLimited, ReleaseNotFound
from shebe_fetch.release.store import ReleaseStore, classify_http_error

API = "https://api.github.com/repos/rhobimd-oss/shebe/releases"
LATEST = f"{API}/latest"


def _release_json(tag: str = "v0.5.7") -> dict[str, object]:
    name = f"shebe-{tag}-darwin-aarch64.tar.gz"
    return {
        "tag_name": tag,
        "assets": [{"name": name, "browser_download_url": f"https://dl/{name}", "size": 10}],
    }


class TestClassifyHttpError:
    """Transport errors mapped onto the acquisition taxonomy."""

    def test_rate_limited_403(self) -> None:
        error = HttpError(
            url=LATEST, status=403, message="Forbidden", rate_limit_remaining=0, rate_limit_reset=1700
        )
        result = classify_http_error(error, repo="r/s", tag=None, authenticated=False)
        assert result == RateLimited(url=LATEST, reset_at=1700, authenticated=False, status=403)

    def test_rate_limited_429(self) -> None:
        error = HttpError(url=LATEST, status=429, message="Too Many", rate_limit_remaining=0)
        assert isinstance(classify_http_error(error, repo="r/s", tag=None), RateLimited)

    def test_plain_403_is_network_error(self) -> None:
        """A 403 with quota left is not rate limiting."""
        error = HttpError(url=LATEST, status=403, message="Forbidden", rate_limit_remaining=42)
        result = classify_http_error(error, repo="r/s", tag=None)
        assert isinstance(result, NetworkError)
        assert result.status == 403

    def test_403_without_headers_is_network_error(self) -> None:
        error = HttpError(url=LATEST, status=403, message="Forbidden")
        assert isinstance(classify_http_error(error, repo="r/s", tag=None), NetworkError)

    def test_404_is_not_found(self) -> None:
        error = HttpError(url=LATEST, status=404, message="Not Found")
        result = classify_http_error(error, repo="r/s", tag="v9.9.9", asset="x.tar.gz")
        assert result == ReleaseNotFound(repo="r/s", tag="v9.9.9", asset="x.tar.gz", status=404)

    @pytest.mark.parametrize("status", [0, 500, 502, 503])
    def test_other_failures_are_network_errors(self, status: int) -> None:
        error = HttpError(url=LATEST, status=status, message="boom")
        result = classify_http_error(error, repo="r/s", tag=None, asset="a")
        assert result == NetworkError(url=LATEST, status=status, detail="boom", asset="a")


class TestReleaseStore:
    """Tests for ReleaseStore lookups."""

    def test_urls(self) -> None:
        store = ReleaseStore(MockHttpClient(), api_base="https://api.github.com/")
        assert store.latest_url() == LATEST
        assert store.tag_url("v0.5.7") == f"{API}/tags/v0.5.7"

    def test_latest_release(self) -> None:
        http = MockHttpClient()
        http.set_json(LATEST, _release_json())
        result = ReleaseStore(http).latest_release()
        assert isinstance(result, Ok)
        assert result.value.tag == "v0.5.7"
        assert result.value.asset_names == ("shebe-v0.5.7-darwin-aarch64.tar.gz",)

    def test_latest_memoized(self) -> None:
        """One API call per store, however many callers."""
        http = MockHttpClient()
        http.set_json(LATEST, _release_json())
        store = ReleaseStore(http)
        store.latest_release()
        store.latest_release()
        assert http.count("get_json") == 1

    def test_latest_memoized_across_threads(self) -> None:
        http = MockHttpClient()
        http.set_json(LATEST, _release_json())
        store = ReleaseStore(http)

        threads = [threading.Thread(target=store.latest_release) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert http.count("get_json") == 1

    def test_failure_not_memoized(self) -> None:
        http = MockHttpClient()
        http.set_json(LATEST, HttpError(url=LATEST, status=503, message="Unavailable"))
        store = ReleaseStore(http)
        assert isinstance(store.latest_release(), Err)

        http.set_json(LATEST, _release_json())
        assert isinstance(store.latest_release(), Ok)
        assert http.count("get_json") == 2

    def test_release_for_tag(self) -> None:
        http = MockHttpClient()
        http.set_json(f"{API}/tags/v0.5.6", _release_json("v0.5.6"))
        store = ReleaseStore(http)
        result = store.release_for("v0.5.6")
        assert isinstance(result, Ok)
        assert result.value.tag == "v0.5.6"
        store.release_for("v0.5.6")
        assert http.count("get_json") == 1

    def test_release_for_reuses_latest(self) -> None:
        http = MockHttpClient()
        http.set_json(LATEST, _release_json("v0.5.7"))
        store = ReleaseStore(http)
        store.latest_release()
        result = store.release_for("v0.5.7")
        assert isinstance(result, Ok)
        assert http.calls == [("get_json", LATEST)]

    def test_unknown_tag_not_found(self) -> None:
        store = ReleaseStore(MockHttpClient())
        result = store.release_for("v9.9.9")
        assert isinstance(result, Err)
        assert isinstance(result.error, ReleaseNotFound)
        assert result.error.tag == "v9.9.9"
        assert result.error.status == 404

    def test_invalid_repo_not_found(self) -> None:
        store = ReleaseStore(MockHttpClient(), repo="nobody/does-not-exist")
        result = store.latest_release()
        assert isinstance(result, Err)
        assert isinstance(result.error, ReleaseNotFound)
        assert result.error.repo == "nobody/does-not-exist"

    def test_malformed_record(self) -> None:
        http = MockHttpClient()
        http.set_json(LATEST, {"message": "weird"})
        result = ReleaseStore(http).latest_release()
        assert isinstance(result, Err)
        assert isinstance(result.error, NetworkError)
        assert "tag_name" in result.error.detail

    def test_rate_limit_carries_authentication(self) -> None:
        http = MockHttpClient()
        http.authenticated = True
        http.set_json(
            LATEST,
            HttpError(url=LATEST, status=403, message="Forbidden", rate_limit_remaining=0),
        )
        result = ReleaseStore(http).latest_release()
        assert isinstance(result, Err)
        assert isinstance(result.error, RateLimited)
        assert result.error.authenticated is True

    def test_clear(self) -> None:
        http = MockHttpClient()
        http.set_json(LATEST, _release_json())
        store = ReleaseStore(http)
        store.latest_release()
        store.clear()
        store.latest_release()
        assert http.count("get_json") == 2
