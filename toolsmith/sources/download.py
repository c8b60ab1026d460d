"""Cached release downloads.

Files land in ``<cache_dir>/downloads`` under ``<sha8(url)>_<filename>`` so a
re-run of the same release install does not hit the network again. When the
release API publishes a ``sha256:`` digest for the asset, both cache hits and
fresh downloads are checked against it; a stale or corrupt cache entry is
fetched again, a corrupt fresh download is an error.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from toolsmith.core.result import Err, Ok, Result

from .http import HttpError

if TYPE_CHECKING:
    from collections.abc import Callable

    from .http import HttpClient

__all__ = ["ChecksumMismatch", "Downloader", "DownloadResult", "file_sha256", "parse_digest"]

logger = logging.getLogger(__name__)

_CHUNK = 1 << 16


@dataclass(frozen=True, slots=True)
class DownloadResult:
    path: Path
    from_cache: bool
    size: int


@dataclass(frozen=True, slots=True)
class ChecksumMismatch:
    """Downloaded content does not hash to the published digest."""

    url: str
    expected: str
    actual: str

    def __str__(self) -> str:
        return f"sha256 mismatch for {self.url}: expected {self.expected}, got {self.actual}"


def parse_digest(digest: str | None) -> str | None:
    """Return the hex part of a ``sha256:<hex>`` digest, or None for other algorithms."""
    if not digest:
        return None
    algo, sep, value = digest.partition(":")
    if not sep or algo.lower() != "sha256" or len(value) != 64:
        return None
    return value.lower()


def file_sha256(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        while chunk := f.read(_CHUNK):
            h.update(chunk)
    return h.hexdigest()


class Downloader:
    """Fetch URLs into a download cache.

    Usage:
        downloader = Downloader(http_client, config.download_cache_dir)
        result = downloader.download(asset.url, sha256=asset.sha256)
    """

    def __init__(self, http: HttpClient, cache_dir: Path) -> None:
        self._http = http
        self._cache_dir = cache_dir

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def cache_path(self, url: str) -> Path:
        """Cache file for URL, e.g. ``a1b2c3d4_fzf-0.66.1-linux_amd64.tar.gz``."""
        filename = Path(urlparse(url).path).name or "download"
        url_hash = hashlib.sha256(url.encode()).hexdigest()[:8]
        return self._cache_dir / f"{url_hash}_{filename}"

    def get_cached(self, url: str) -> Path | None:
        path = self.cache_path(url)
        return path if path.exists() else None

    def _cache_hit(self, path: Path, sha256: str | None) -> bool:
        if not path.exists():
            return False
        if sha256 is None:
            return True
        if file_sha256(path) == sha256:
            return True
        logger.warning("Cached %s does not match its digest, downloading again", path.name)
        return False

    def download(
        self,
        url: str,
        *,
        sha256: str | None = None,
        force: bool = False,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[DownloadResult, HttpError | ChecksumMismatch]:
        """Download ``url`` into the cache, or reuse a previous download.

        Args:
            url: URL to download
            sha256: Expected hex digest, checked when given
            force: Re-download even if cached
            progress: Optional callback(downloaded_bytes, total_bytes)
        """
        target = self.cache_path(url)
        if not force and self._cache_hit(target, sha256):
            logger.debug("Using cached download %s", target)
            return Ok(DownloadResult(path=target, from_cache=True, size=target.stat().st_size))

        self._cache_dir.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + ".part")
        fetched = self._http.download(url, partial, progress=progress)
        if isinstance(fetched, Err):
            partial.unlink(missing_ok=True)
            return fetched

        if sha256 is not None:
            actual = file_sha256(partial)
            if actual != sha256:
                partial.unlink(missing_ok=True)
                return Err(ChecksumMismatch(url=url, expected=sha256, actual=actual))

        # Only complete, verified downloads ever appear under the cache name.
        partial.replace(target)
        return Ok(DownloadResult(path=target, from_cache=False, size=target.stat().st_size))
