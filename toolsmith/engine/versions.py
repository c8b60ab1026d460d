"""Version parsing, comparison and target resolution.

Versions compare by normalized numeric segments, never as raw strings:

    >>> compare("1.10.0", "1.9.0")
    <Ordering.GREATER: 1>
    >>> compare("1.2", "1.2.0")
    <Ordering.EQUAL: 0>
    >>> compare("1.2.0", "1.2.0-rc1")
    <Ordering.GREATER: 1>

A pre-release suffix ranks below its absence. Pre-release identifiers compare
piecewise, numbers numerically and below words, and a prefix ranks below its
extensions (``rc < rc2 < rc10``).

A lone letter glued to the release (tmux ``3.3a``) is a patch release, not a
pre-release: ``3.3 < 3.3a < 3.3b < 3.4``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from toolsmith.core.errors import VersionResolutionError
from toolsmith.core.result import Err
from toolsmith.sources.download import parse_digest

from .assets import Asset, classify_asset

if TYPE_CHECKING:
    from toolsmith.sources.github import GitHubReleases, ReleaseInfo

__all__ = [
    "Ordering",
    "Version",
    "ReleaseVersion",
    "VersionOracle",
    "parse_version",
    "compare",
    "split_source_ref",
]

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(
    r"(?<![0-9A-Za-z])v?(\d+(?:\.\d+)*)"
    r"(?:-([0-9A-Za-z][0-9A-Za-z.-]*)"
    r"|((?:alpha|beta|pre|rc|dev)\.?\d*|[ab]\.?\d+)"
    r"|([a-z])(?![0-9A-Za-z]))?"
    r"(?:\+[0-9A-Za-z.-]+)?"
)
_IDENT_RE = re.compile(r"\d+|[A-Za-z]+")


class Ordering(Enum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


@dataclass(frozen=True, slots=True)
class Version:
    """Comparable version value.

    Attributes:
        segments: Numeric release segments (``1.10.0`` -> ``(1, 10, 0)``)
        prerelease: Pre-release identifiers (``rc1`` -> ``("rc", 1)``)
        patch_letter: Letter release after the segments (``3.3a`` -> ``"a"``)
        raw: Text the version was parsed from (not part of equality)
    """

    segments: tuple[int, ...]
    prerelease: tuple[int | str, ...] = ()
    patch_letter: str = ""
    raw: str = field(default="", compare=False)

    def _key(
        self,
    ) -> tuple[tuple[int, ...], str, tuple[tuple[int, int | str], ...] | None]:
        segments = list(self.segments)
        while segments and segments[-1] == 0:
            segments.pop()
        pre = tuple((0, p) if isinstance(p, int) else (1, p) for p in self.prerelease)
        return tuple(segments), self.patch_letter, pre or None

    def _cmp(self, other: Version) -> int:
        (a_seg, a_letter, a_pre), (b_seg, b_letter, b_pre) = self._key(), other._key()
        if (a_seg, a_letter) != (b_seg, b_letter):
            return -1 if (a_seg, a_letter) < (b_seg, b_letter) else 1
        if a_pre == b_pre:
            return 0
        if a_pre is None:
            return 1
        if b_pre is None:
            return -1
        return -1 if a_pre < b_pre else 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._cmp(other) == 0

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: Version) -> bool:
        return self._cmp(other) < 0

    def __le__(self, other: Version) -> bool:
        return self._cmp(other) <= 0

    def __gt__(self, other: Version) -> bool:
        return self._cmp(other) > 0

    def __ge__(self, other: Version) -> bool:
        return self._cmp(other) >= 0

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def __str__(self) -> str:
        text = ".".join(str(s) for s in self.segments) + self.patch_letter
        if self.prerelease:
            text += "-" + ".".join(str(p) for p in self.prerelease)
        return text


def parse_version(text: str) -> Version | None:
    """Extract the first version number from ``text``.

    Accepts tags (``v0.66.1``) and tool output (``ripgrep 14.1.0 (rev ...)``).
    Build metadata after ``+`` is ignored. Returns None when no digits are found.
    """
    match = _VERSION_RE.search(text)
    if match is None:
        return None
    segments = tuple(int(s) for s in match.group(1).split("."))
    suffix = match.group(2) or match.group(3) or ""
    prerelease = tuple(int(p) if p.isdigit() else p.lower() for p in _IDENT_RE.findall(suffix))
    return Version(
        segments=segments,
        prerelease=prerelease,
        patch_letter=match.group(4) or "",
        raw=match.group(0),
    )


def _coerce(value: Version | str) -> Version:
    if isinstance(value, Version):
        return value
    parsed = parse_version(value)
    if parsed is None:
        raise ValueError(f"Not a version: {value!r}")
    return parsed


def compare(a: Version | str, b: Version | str) -> Ordering:
    return Ordering(_coerce(a)._cmp(_coerce(b)))


def split_source_ref(source_ref: str) -> tuple[str, str | None]:
    """Split ``owner/repo[@tag]``."""
    repo, _, tag = source_ref.partition("@")
    return repo, tag or None


@dataclass(frozen=True, slots=True)
class ReleaseVersion:
    """A published release with its version and classified assets."""

    tag: str
    version: Version
    assets: tuple[Asset, ...] = ()

    @property
    def segments(self) -> tuple[int, ...]:
        return self.version.segments

    @classmethod
    def from_release(cls, release: ReleaseInfo) -> ReleaseVersion | None:
        version = parse_version(release.tag)
        if version is None:
            return None
        return cls(
            tag=release.tag,
            version=version,
            assets=tuple(
                classify_asset(a.name, a.url, sha256=parse_digest(a.digest))
                for a in release.assets
            ),
        )


class VersionOracle:
    """Answers "what is the latest version" for release sources.

    Lookups are memoised for the lifetime of the oracle, which the
    orchestrator creates once per run.
    """

    def __init__(self, releases: GitHubReleases) -> None:
        self._releases = releases
        self._cache: dict[str, ReleaseVersion] = {}

    def latest_version(self, source_ref: str) -> ReleaseVersion:
        """Resolve the newest release for ``owner/repo``, or the pinned tag.

        Raises:
            VersionResolutionError: The API failed or the tag has no version.
        """
        cached = self._cache.get(source_ref)
        if cached is not None:
            return cached

        repo, tag = split_source_ref(source_ref)
        result = self._releases.by_tag(repo, tag) if tag else self._releases.latest(repo)
        if isinstance(result, Err):
            raise VersionResolutionError(repo, str(result.error))

        release = ReleaseVersion.from_release(result.value)
        if release is None:
            raise VersionResolutionError(repo, f"tag {result.value.tag!r} has no version number")

        logger.debug("Latest release of %s is %s", source_ref, release.tag)
        self._cache[source_ref] = release
        return release

    def compare(self, a: Version | str, b: Version | str) -> Ordering:
        return compare(a, b)

    def resolve_target(
        self,
        source_ref: str | None,
        pinned_minimum: Version | str | None,
        installed: Version | None,
    ) -> Version | None:
        """Decide which version should be installed.

        ``installed`` is returned unchanged when it satisfies both the pin
        and the latest known release. Otherwise the greater of pin and latest
        is the target. None means "any version".

        Raises:
            VersionResolutionError: Latest release lookup failed.
        """
        pin = _coerce(pinned_minimum) if pinned_minimum is not None else None
        latest = self.latest_version(source_ref).version if source_ref else None

        if installed is not None:
            if (pin is None or installed >= pin) and (latest is None or installed >= latest):
                return installed

        candidates = [v for v in (pin, latest) if v is not None]
        return max(candidates) if candidates else None
