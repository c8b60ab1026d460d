"""Remote sources: HTTP, release metadata, downloads and archives."""

from .archive import ArchiveError, Extractor, ExtractResult
from .download import ChecksumMismatch, Downloader, DownloadResult, parse_digest
from .github import GitHubReleases, ReleaseAssetInfo, ReleaseInfo, is_valid_repo
from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient, with_retries

__all__ = [
    # archive
    "ArchiveError",
    "Extractor",
    "ExtractResult",
    # download
    "ChecksumMismatch",
    "Downloader",
    "DownloadResult",
    "parse_digest",
    # github
    "GitHubReleases",
    "ReleaseAssetInfo",
    "ReleaseInfo",
    "is_valid_repo",
    # http
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "with_retries",
]
