"""GitHub Releases API.

Functions here only fetch and parse release metadata. Version ordering and
asset selection live in the engine.

    api = GitHubReleases(http, "https://api.github.com")
    match api.latest("junegunn/fzf"):
        case Ok(release):
            print(release.tag, [a.name for a in release.assets])
        case Err(error):
            print(error)
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from toolsmith.core.result import Err, Ok, Result
from toolsmith.core.structured import as_obj_list, as_str_dict, get_bool, get_int, get_str

from .http import HttpError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .http import HttpClient

__all__ = [
    "ReleaseAssetInfo",
    "ReleaseInfo",
    "GitHubReleases",
    "is_valid_repo",
]

_REPO_RE = re.compile(r"^[A-Za-z0-9._-]+/[A-Za-z0-9._-]+$")


def is_valid_repo(repo: str) -> bool:
    """Check an ``owner/repo`` string."""
    return bool(_REPO_RE.match(repo)) and ".." not in repo


@dataclass(frozen=True, slots=True)
class ReleaseAssetInfo:
    name: str
    url: str
    size: int = 0
    digest: str | None = None  # e.g. "sha256:<hex>", absent on older releases


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """One release as reported by the API.

    Attributes:
        tag: Tag name exactly as published (e.g. "v0.66.1")
        prerelease: Whether the release is flagged as a pre-release
        assets: Downloadable files attached to the release
    """

    tag: str
    prerelease: bool
    assets: tuple[ReleaseAssetInfo, ...]


def _parse_release(data: Mapping[str, object], url: str) -> Result[ReleaseInfo, HttpError]:
    tag = get_str(data, "tag_name")
    if tag is None:
        return Err(HttpError(url=url, status=0, message="Missing tag_name in response"))

    assets: list[ReleaseAssetInfo] = []
    for raw in as_obj_list(data.get("assets")) or []:
        asset = as_str_dict(raw)
        if asset is None:
            continue
        name = get_str(asset, "name")
        download_url = get_str(asset, "browser_download_url")
        if name is None or download_url is None:
            continue
        assets.append(
            ReleaseAssetInfo(
                name=name,
                url=download_url,
                size=get_int(asset, "size") or 0,
                digest=get_str(asset, "digest"),
            )
        )

    return Ok(
        ReleaseInfo(
            tag=tag,
            prerelease=bool(get_bool(data, "prerelease")),
            assets=tuple(assets),
        )
    )


class GitHubReleases:
    """Read-only client for ``/repos/<owner>/<repo>/releases``."""

    def __init__(self, http: HttpClient, api_url: str = "https://api.github.com") -> None:
        self._http = http
        self._api_url = api_url.rstrip("/")

    def _base(self, repo: str) -> str:
        return f"{self._api_url}/repos/{repo}/releases"

    def _invalid(self, repo: str) -> Err[HttpError]:
        return Err(HttpError(url=repo, status=400, message="Invalid repository name"))

    def by_tag(self, repo: str, tag: str) -> Result[ReleaseInfo, HttpError]:
        if not is_valid_repo(repo):
            return self._invalid(repo)
        url = f"{self._base(repo)}/tags/{tag}"
        result = self._http.get_json(url)
        if isinstance(result, Err):
            return result
        return _parse_release(result.value, url)

    def releases(self, repo: str) -> Result[list[ReleaseInfo], HttpError]:
        """List releases, newest first, including pre-releases."""
        if not is_valid_repo(repo):
            return self._invalid(repo)
        url = self._base(repo)
        text = self._http.get_text(url)
        if isinstance(text, Err):
            return text

        try:
            raw: object = json.loads(text.value)
        except json.JSONDecodeError as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        items = as_obj_list(raw)
        if items is None:
            return Err(HttpError(url=url, status=0, message="Expected JSON array"))

        releases: list[ReleaseInfo] = []
        for item in items:
            data = as_str_dict(item)
            if data is None:
                continue
            parsed = _parse_release(data, url)
            if isinstance(parsed, Ok):
                releases.append(parsed.value)
        return Ok(releases)

    def latest(self, repo: str) -> Result[ReleaseInfo, HttpError]:
        """Fetch the latest release.

        ``/releases/latest`` ignores pre-releases and answers 404 for
        repositories that only publish those; fall back to the newest entry
        of the full list in that case.
        """
        if not is_valid_repo(repo):
            return self._invalid(repo)
        url = f"{self._base(repo)}/latest"
        result = self._http.get_json(url)
        if isinstance(result, Ok):
            return _parse_release(result.value, url)
        if result.error.status != 404:
            return result

        listed = self.releases(repo)
        if isinstance(listed, Err):
            return listed
        if not listed.value:
            return Err(HttpError(url=url, status=404, message="No releases published"))
        return Ok(listed.value[0])
