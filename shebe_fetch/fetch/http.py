"""HTTP client abstraction for Release Store calls and downloads.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import http.client
import json
import ssl
import threading
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from email.message import Message
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, cast, runtime_checkable
from urllib.parse import urlparse

from shebe_fetch import __version__
from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.core.structured import as_str_dict

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
    "DownloadedFile",
    "CANCELLED_MESSAGE",
    "TIMED_OUT_MESSAGE",
]

CANCELLED_MESSAGE = "Download cancelled"
TIMED_OUT_MESSAGE = "Download timed out"

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
        rate_limit_remaining: X-RateLimit-Remaining header, if sent
        rate_limit_reset: X-RateLimit-Reset header (epoch seconds), if sent
    """

    url: str
    status: int
    message: str
    rate_limit_remaining: int | None = None
    rate_limit_reset: int | None = None

    @property
    def is_rate_limited(self) -> bool:
        """True for a 403/429 caused by an exhausted quota."""
        return self.status in (403, 429) and self.rate_limit_remaining == 0

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class DownloadedFile:
    """A file written by HttpClient.download().

    Attributes:
        path: Destination path
        size: Bytes actually written
        content_length: Content-Length header value, None if not sent
    """

    path: Path
    size: int
    content_length: int | None


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    This abstraction allows injecting mock clients for testing,
    avoiding real network calls in unit tests.
    """

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        """Fetch URL and parse as a JSON object."""
        ...

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> Result[DownloadedFile, HttpError]:
        """Stream URL to a file.

        A short body is not an error at this layer: the caller compares
        DownloadedFile.size against what it expected.

        Args:
            url: URL to download
            dest: Destination path
            progress: Optional callback(downloaded, total) for progress
            cancel: Checked between chunks; when set the download stops
                with an HttpError carrying CANCELLED_MESSAGE
        """
        ...


def _header_int(headers: Message | None, name: str) -> int | None:
    if headers is None:
        return None
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _describe(e: http.client.HTTPException) -> str:
    if isinstance(e, http.client.IncompleteRead):
        return f"connection closed mid-transfer ({len(e.partial)} bytes of chunk read)"
    text = str(e)
    return f"{type(e).__name__}: {text}" if text else type(e).__name__


def _http_error(url: str, e: urllib.error.HTTPError) -> HttpError:
    return HttpError(
        url=url,
        status=e.code,
        message=str(e.reason),
        rate_limit_remaining=_header_int(e.headers, "X-RateLimit-Remaining"),
        rate_limit_reset=_header_int(e.headers, "X-RateLimit-Reset"),
    )


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Bearer token for the API host only (never forwarded to download hosts)
    - Streaming downloads with progress and cancellation
    - Timeouts, surfaced as errors rather than hangs
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = f"shebe-fetch/{__version__}",
        token: str | None = None,
        api_host: str = "api.github.com",
    ) -> None:
        """Initialize HTTP client.

        Args:
            timeout: Bound in seconds on each request or download, end to end
            user_agent: User-Agent header value
            token: Optional bearer token for API calls
            api_host: Host that receives the token
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.authenticated = bool(token)
        self._token = token
        self._api_host = api_host
        self._ssl_context = ssl.create_default_context()

    def _headers(self, url: str, accept: str) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent, "Accept": accept}
        if self._token and urlparse(url).hostname == self._api_host:
            headers["Authorization"] = f"Bearer {self._token}"
            headers["X-GitHub-Api-Version"] = "2022-11-28"
        return headers

    def _read_body(
        self,
        response: http.client.HTTPResponse,
        url: str,
        deadline: float,
        sink: Callable[[bytes], None],
        cancel: threading.Event | None = None,
    ) -> Result[int, HttpError]:
        """Stream the response body into sink until EOF or the deadline.

        read1() returns whatever is buffered, so a server trickling bytes
        cannot hold a single read past the deadline.
        """
        received = 0
        while True:
            if cancel is not None and cancel.is_set():
                return Err(HttpError(url=url, status=0, message=CANCELLED_MESSAGE))
            if time.monotonic() > deadline:
                return Err(HttpError(url=url, status=0, message=TIMED_OUT_MESSAGE))
            chunk = response.read1(_CHUNK_SIZE)
            if not chunk:
                return Ok(received)
            received += len(chunk)
            sink(chunk)

    def _request(self, url: str) -> Result[bytes, HttpError]:
        deadline = time.monotonic() + self.timeout
        try:
            req = urllib.request.Request(
                url,
                headers=self._headers(url, "application/vnd.github+json"),
            )
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                body = bytearray()
                read = self._read_body(response, url, deadline, body.extend)
                if isinstance(read, Err):
                    return read
                return Ok(bytes(body))
        except urllib.error.HTTPError as e:
            return Err(_http_error(url, e))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except http.client.HTTPException as e:
            return Err(HttpError(url=url, status=0, message=_describe(e)))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        """Fetch URL and parse as JSON."""
        result = self._request(url)
        if isinstance(result, Err):
            return result

        try:
            data_obj: object = json.loads(result.value.decode("utf-8"))
            data = as_str_dict(data_obj)
            if data is None:
                return Err(HttpError(url=url, status=0, message="Expected JSON object"))
            return Ok(cast(dict[str, Any], data))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> Result[DownloadedFile, HttpError]:
        """Stream URL to dest with optional progress and cancellation.

        The client timeout bounds the whole transfer, not only each read.
        """
        deadline = time.monotonic() + self.timeout
        try:
            req = urllib.request.Request(
                url,
                headers=self._headers(url, "application/octet-stream"),
            )
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                content_length = _header_int(response.headers, "Content-Length")
                total = content_length or 0

                dest.parent.mkdir(parents=True, exist_ok=True)

                with open(dest, "wb") as f:
                    written = 0

                    def sink(chunk: bytes) -> None:
                        nonlocal written
                        f.write(chunk)
                        written += len(chunk)
                        if progress:
                            progress(written, total)

                    read = self._read_body(response, url, deadline, sink, cancel)
                    if isinstance(read, Err):
                        return read

                return Ok(DownloadedFile(path=dest, size=read.value, content_length=content_length))

        except urllib.error.HTTPError as e:
            return Err(_http_error(url, e))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message=TIMED_OUT_MESSAGE))
        except http.client.HTTPException as e:
            return Err(HttpError(url=url, status=0, message=_describe(e)))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


@dataclass(frozen=True, slots=True)
class _MockDownload:
    content: bytes
    content_length: int | None


class MockHttpClient:
    """Mock HTTP client for testing.

    Allows setting predefined responses for specific URLs. Unknown URLs
    answer 404. Every call is recorded in `calls`.

    Usage:
        client = MockHttpClient()
        client.set_json(LATEST_URL, {"tag_name": "v0.5.7", "assets": []})
        result = client.get_json(LATEST_URL)
    """

    def __init__(self) -> None:
        self._json_responses: dict[str, dict[str, Any] | HttpError] = {}
        self._download_responses: dict[str, _MockDownload | HttpError] = {}
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str]] = []
        self.authenticated = False

    def set_json(self, url: str, response: dict[str, Any] | HttpError) -> None:
        """Set JSON response for URL."""
        self._json_responses[url] = response

    def set_download(
        self,
        url: str,
        response: bytes | HttpError,
        *,
        content_length: int | None = None,
    ) -> None:
        """Set download content for URL.

        content_length defaults to the content size; pass a larger value to
        simulate a connection that closed early.
        """
        if isinstance(response, HttpError):
            self._download_responses[url] = response
            return
        length = len(response) if content_length is None else content_length
        self._download_responses[url] = _MockDownload(response, length)

    def count(self, kind: str) -> int:
        """Number of recorded calls of a kind ("get_json" or "download")."""
        return sum(1 for k, _ in self.calls if k == kind)

    def _record(self, kind: str, url: str) -> None:
        with self._lock:
            self.calls.append((kind, url))

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        """Get mocked JSON response."""
        self._record("get_json", url)

        if url not in self._json_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._json_responses[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> Result[DownloadedFile, HttpError]:
        """Mock download - writes predefined content to dest."""
        self._record("download", url)

        if cancel is not None and cancel.is_set():
            return Err(HttpError(url=url, status=0, message=CANCELLED_MESSAGE))

        if url not in self._download_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._download_responses[url]
        if isinstance(response, HttpError):
            return Err(response)

        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(response.content)

        if progress:
            progress(len(response.content), response.content_length or 0)

        return Ok(
            DownloadedFile(
                path=dest,
                size=len(response.content),
                content_length=response.content_length,
            )
        )
