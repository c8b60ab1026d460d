"""HTTP access for release metadata, signing keys and downloads.

Everything returns ``Result[..., HttpError]``; nothing raises for network
conditions. ``RealHttpClient`` talks to the network through urllib and
retries transient failures, ``MockHttpClient`` serves canned responses in
tests.
"""

from __future__ import annotations

import io
import json
import logging
import ssl
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Protocol, cast, runtime_checkable
from urllib.parse import urlparse

from toolsmith import __version__
from toolsmith.core.result import Err, Ok, Result
from toolsmith.core.structured import as_str_dict

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
    "http_error_from",
    "with_retries",
]

logger = logging.getLogger(__name__)

type Progress = Callable[[int, int], None]

_CHUNK = 1 << 16


@dataclass(frozen=True, slots=True)
class HttpError:
    """A failed request.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"

    @property
    def transient(self) -> bool:
        """Network errors, rate limiting and server errors are worth retrying."""
        return self.status == 0 or self.status == 429 or self.status >= 500


def http_error_from(url: str, exc: Exception) -> HttpError:
    """Translate a urllib/socket exception into an ``HttpError``.

    GitHub answers an exhausted API quota with 403 and
    ``X-RateLimit-Remaining: 0``; that is reported as 429 so it is retried
    like any other rate limit.
    """
    if isinstance(exc, urllib.error.HTTPError):
        headers = exc.headers
        if exc.code == 403 and headers is not None and headers.get("X-RateLimit-Remaining") == "0":
            return HttpError(url=url, status=429, message="API rate limit exceeded")
        return HttpError(url=url, status=exc.code, message=str(exc.reason))
    if isinstance(exc, urllib.error.URLError):
        return HttpError(url=url, status=0, message=str(exc.reason))
    if isinstance(exc, TimeoutError):
        return HttpError(url=url, status=0, message="Request timed out")
    return HttpError(url=url, status=0, message=str(exc))


def with_retries[T](
    op: Callable[[], Result[T, HttpError]],
    *,
    retries: int,
    backoff: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Result[T, HttpError]:
    """Run ``op`` until it succeeds, fails authoritatively, or retries run out.

    Attempt N+1 waits ``backoff * N`` seconds.
    """
    attempt = 0
    while True:
        result = op()
        if isinstance(result, Ok) or not result.error.transient or attempt >= retries:
            return result
        attempt += 1
        logger.warning("Retrying after %s (attempt %d/%d)", result.error, attempt, retries)
        sleep(backoff * attempt)


@runtime_checkable
class HttpClient(Protocol):
    """What the engine needs from HTTP; injectable so tests never touch the network."""

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        """Fetch a JSON object."""
        ...

    def get_text(self, url: str) -> Result[str, HttpError]: ...

    def get_bytes(self, url: str) -> Result[bytes, HttpError]: ...

    def download(
        self,
        url: str,
        dest: Path,
        progress: Progress | None = None,
    ) -> Result[Path, HttpError]:
        """Stream ``url`` into ``dest``; ``progress(done, total)`` is called per chunk."""
        ...


def _decode_json_object(url: str, body: bytes) -> Result[dict[str, Any], HttpError]:
    try:
        parsed: object = json.loads(body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
    data = as_str_dict(parsed)
    if data is None:
        return Err(HttpError(url=url, status=0, message="Expected JSON object"))
    return Ok(cast(dict[str, Any], data))


class RealHttpClient:
    """urllib client with system certificates and bounded retries.

    The bearer token is sent only to ``token_hosts`` so it never leaks to
    the CDN hosts that serve release assets.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = f"toolsmith/{__version__}",
        *,
        token: str | None = None,
        token_hosts: Iterable[str] = ("api.github.com",),
        retries: int = 0,
        backoff: float = 1.0,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.retries = retries
        self.backoff = backoff
        self._token = token
        self._token_hosts = frozenset(token_hosts)
        self._ssl_context = ssl.create_default_context()

    def _headers(self, url: str) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self._token and urlparse(url).netloc in self._token_hosts:
            headers["Authorization"] = f"Bearer {self._token}"
            headers["Accept"] = "application/vnd.github+json"
        return headers

    def _stream(
        self, url: str, sink: BinaryIO, progress: Progress | None
    ) -> Result[int, HttpError]:
        """Copy the response body into ``sink``; one attempt, no retries."""
        request = urllib.request.Request(url, headers=self._headers(url))
        try:
            with urllib.request.urlopen(
                request, timeout=self.timeout, context=self._ssl_context
            ) as response:
                total = int(response.headers.get("Content-Length") or 0)
                done = 0
                while chunk := response.read(_CHUNK):
                    sink.write(chunk)
                    done += len(chunk)
                    if progress:
                        progress(done, total)
                return Ok(done)
        except (OSError, ValueError) as e:
            return Err(http_error_from(url, e))

    def get_bytes(self, url: str) -> Result[bytes, HttpError]:
        def attempt() -> Result[bytes, HttpError]:
            logger.debug("GET %s", url)
            buffer = io.BytesIO()
            result = self._stream(url, buffer, None)
            if isinstance(result, Err):
                return result
            return Ok(buffer.getvalue())

        return with_retries(attempt, retries=self.retries, backoff=self.backoff)

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        body = self.get_bytes(url)
        if isinstance(body, Err):
            return body
        return _decode_json_object(url, body.value)

    def get_text(self, url: str) -> Result[str, HttpError]:
        body = self.get_bytes(url)
        if isinstance(body, Err):
            return body
        try:
            return Ok(body.value.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(HttpError(url=url, status=0, message=f"Decode error: {e}"))

    def download(
        self,
        url: str,
        dest: Path,
        progress: Progress | None = None,
    ) -> Result[Path, HttpError]:
        def attempt() -> Result[Path, HttpError]:
            logger.debug("Downloading %s -> %s", url, dest)
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                with dest.open("wb") as f:
                    result = self._stream(url, f, progress)
            except OSError as e:
                return Err(HttpError(url=url, status=0, message=str(e)))
            if isinstance(result, Err):
                return result
            return Ok(dest)

        return with_retries(attempt, retries=self.retries, backoff=self.backoff)


class MockHttpClient:
    """Canned responses keyed by URL; anything unset answers 404.

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.example.com/data", {"key": "value"})
        result = client.get_json("https://api.example.com/data")
        assert result == Ok({"key": "value"})
    """

    def __init__(self) -> None:
        self._json: dict[str, dict[str, Any] | HttpError] = {}
        self._text: dict[str, str | HttpError] = {}
        self._bytes: dict[str, bytes | HttpError] = {}
        self.calls: list[tuple[str, str]] = []

    def set_json(self, url: str, response: dict[str, Any] | HttpError) -> None:
        self._json[url] = response

    def set_text(self, url: str, response: str | HttpError) -> None:
        self._text[url] = response

    def set_bytes(self, url: str, response: bytes | HttpError) -> None:
        """Raw content for URL, served by get_bytes and download."""
        self._bytes[url] = response

    set_download = set_bytes

    def calls_to(self, url: str) -> int:
        return sum(1 for _, called in self.calls if called == url)

    def _answer[V](
        self, op: str, table: dict[str, V | HttpError], url: str
    ) -> Result[V, HttpError]:
        self.calls.append((op, url))
        response = table.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        return self._answer("get_json", self._json, url)

    def get_text(self, url: str) -> Result[str, HttpError]:
        return self._answer("get_text", self._text, url)

    def get_bytes(self, url: str) -> Result[bytes, HttpError]:
        return self._answer("get_bytes", self._bytes, url)

    def download(
        self,
        url: str,
        dest: Path,
        progress: Progress | None = None,
    ) -> Result[Path, HttpError]:
        content = self._answer("download", self._bytes, url)
        if isinstance(content, Err):
            return content
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(content.value)
        if progress:
            progress(len(content.value), len(content.value))
        return Ok(dest)
