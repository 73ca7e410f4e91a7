"""Release Store client (GitHub Releases API).

Two endpoints are used:
- GET {api_base}/repos/{repo}/releases/latest
- GET {api_base}/repos/{repo}/releases/tags/{tag}

Lookups are memoized per store instance in OnceCells, so every caller
holding the same store shares one API call per release. The CLI builds one
store per invocation. Failed lookups are not memoized.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from shebe_fetch.core.config import DEFAULT_API_BASE, DEFAULT_REPO
from shebe_fetch.core.once import OnceCell
from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.fetch.http import HttpError
from shebe_fetch.release.errors import NetworkError, RateLimited, ReleaseNotFound
from shebe_fetch.release.model import Release, parse_release

if TYPE_CHECKING:
    from shebe_fetch.fetch.http import HttpClient

__all__ = ["ReleaseStore", "StoreError", "classify_http_error"]

StoreError = ReleaseNotFound | NetworkError | RateLimited


def classify_http_error(
    error: HttpError,
    *,
    repo: str,
    tag: str | None,
    asset: str | None = None,
    authenticated: bool = False,
) -> StoreError:
    """Map a transport error onto the acquisition taxonomy.

    - 403/429 with an exhausted quota -> RateLimited
    - 404 -> ReleaseNotFound (for a release lookup or an asset download)
    - anything else, including plain 403 -> NetworkError
    """
    if error.is_rate_limited:
        return RateLimited(
            url=error.url,
            reset_at=error.rate_limit_reset,
            authenticated=authenticated,
            status=error.status,
        )
    if error.status == 404:
        return ReleaseNotFound(repo=repo, tag=tag, asset=asset, status=404)
    return NetworkError(url=error.url, status=error.status, detail=error.message, asset=asset)


class ReleaseStore:
    """Reads release records for one repository.

    Usage:
        store = ReleaseStore(http)
        match store.latest_release():
            case Ok(release):
                print(release.tag, release.asset_names)
            case Err(error):
                print(error.message)
    """

    def __init__(
        self,
        http: HttpClient,
        *,
        repo: str = DEFAULT_REPO,
        api_base: str = DEFAULT_API_BASE,
    ) -> None:
        self._http = http
        self._repo = repo
        self._api_base = api_base.rstrip("/")
        self._latest: OnceCell[Release] = OnceCell()
        self._by_tag: dict[str, OnceCell[Release]] = {}
        self._by_tag_lock = threading.Lock()

    @property
    def repo(self) -> str:
        return self._repo

    @property
    def authenticated(self) -> bool:
        return bool(getattr(self._http, "authenticated", False))

    def latest_url(self) -> str:
        return f"{self._api_base}/repos/{self._repo}/releases/latest"

    def tag_url(self, tag: str) -> str:
        return f"{self._api_base}/repos/{self._repo}/releases/tags/{tag}"

    def latest_release(self) -> Result[Release, StoreError]:
        """Fetch the latest (non-prerelease) release, once per store."""
        return self._latest.get_or_try_init(lambda: self._fetch(self.latest_url(), tag=None))

    def release_for(self, tag: str) -> Result[Release, StoreError]:
        """Fetch the release for a pinned tag, once per store and tag."""
        latest = self._latest.get()
        if latest is not None and latest.tag == tag:
            return Ok(latest)

        with self._by_tag_lock:
            cell = self._by_tag.setdefault(tag, OnceCell())
        return cell.get_or_try_init(lambda: self._fetch(self.tag_url(tag), tag=tag))

    def clear(self) -> None:
        """Drop memoized lookups."""
        self._latest.reset()
        with self._by_tag_lock:
            self._by_tag.clear()

    def _fetch(self, url: str, *, tag: str | None) -> Result[Release, StoreError]:
        result = self._http.get_json(url)
        if isinstance(result, Err):
            return Err(
                classify_http_error(
                    result.error,
                    repo=self._repo,
                    tag=tag,
                    authenticated=self.authenticated,
                )
            )

        parsed = parse_release(result.value)
        if isinstance(parsed, Err):
            return Err(NetworkError(url=url, status=0, detail=parsed.error))
        return Ok(parsed.value)
