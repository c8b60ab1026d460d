"""Release asset classification and selection.

Asset filenames are classified once into (os, arch, archive kind) tags;
``select_asset`` then filters by OS, then by architecture, and breaks ties
deterministically. Nothing is guessed: an asset without a recognisable OS or
architecture never matches (a macOS ``universal`` build counts for both
architectures).
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from toolsmith.core.errors import NoCompatibleAssetError
from toolsmith.platform.detection import PlatformInfo

__all__ = [
    "ArchiveKind",
    "Asset",
    "classify_asset",
    "select_asset",
    "compatible_assets",
]


class ArchiveKind(StrEnum):
    TAR_GZ = "tar.gz"
    TAR_XZ = "tar.xz"
    TAR_BZ2 = "tar.bz2"
    ZIP = "zip"
    BINARY = "binary"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True, slots=True)
class Asset:
    """One downloadable release file.

    Attributes:
        name: File name as published
        url: Download URL
        os_tag: Canonical OS ("linux", "macos", "windows", ...) or None
        arch_tag: Canonical arch ("amd64", "arm64", "universal", ...) or None
        archive_kind: How the file is unpacked
        sha256: Published hex digest, if the release API reports one
    """

    name: str
    url: str
    os_tag: str | None
    arch_tag: str | None
    archive_kind: ArchiveKind
    sha256: str | None = None


_ARCHIVE_SUFFIXES: tuple[tuple[tuple[str, ...], ArchiveKind], ...] = (
    ((".tar.gz", ".tgz"), ArchiveKind.TAR_GZ),
    ((".tar.xz", ".txz"), ArchiveKind.TAR_XZ),
    ((".tar.bz2", ".tbz2", ".tbz"), ArchiveKind.TAR_BZ2),
    ((".zip",), ArchiveKind.ZIP),
)

# Any other short alphabetic extension (.sha256, .sig, .deb, .rpm, .exe, .txt,
# a bare .gz ...) is something we cannot install from.
_EXTENSION_RE = re.compile(r"\.[a-z][a-z0-9]{0,11}$")

_OS_PATTERNS: tuple[tuple[str, str], ...] = (
    ("macos", r"darwin|macos|mac|osx|apple"),
    ("linux", r"linux"),
    ("windows", r"windows|win32|win64|win"),
    ("freebsd", r"freebsd"),
    ("android", r"android"),
)

# Order matters: arm64 must be tried before the generic arm family.
_ARCH_PATTERNS: tuple[tuple[str, str], ...] = (
    ("amd64", r"x86_64|x86-64|amd64|x64"),
    ("arm64", r"aarch64|arm64"),
    ("universal", r"universal"),
    ("386", r"i386|i686|386|x86|32bit"),
    ("arm", r"armv7l?|armv6l?|armhf|armel|arm"),
    ("ppc64le", r"ppc64le"),
    ("s390x", r"s390x"),
    ("riscv64", r"riscv64"),
)


def _tag(name: str, patterns: tuple[tuple[str, str], ...]) -> str | None:
    for canonical, alternatives in patterns:
        if re.search(rf"(?<![a-z0-9])(?:{alternatives})(?![a-z0-9])", name):
            return canonical
    return None


def _archive_kind(lower: str) -> ArchiveKind:
    for suffixes, kind in _ARCHIVE_SUFFIXES:
        if lower.endswith(suffixes):
            return kind
    if _EXTENSION_RE.search(lower):
        return ArchiveKind.UNSUPPORTED
    return ArchiveKind.BINARY


def _stem(lower: str, kind: ArchiveKind) -> str:
    for suffixes, candidate in _ARCHIVE_SUFFIXES:
        if candidate == kind:
            for suffix in suffixes:
                if lower.endswith(suffix):
                    return lower[: -len(suffix)]
    return lower


def classify_asset(name: str, url: str, *, sha256: str | None = None) -> Asset:
    """Derive OS, architecture and archive kind from a release file name."""
    lower = name.lower()
    kind = _archive_kind(lower)
    stem = _stem(lower, kind)
    return Asset(
        name=name,
        url=url,
        os_tag=_tag(stem, _OS_PATTERNS),
        arch_tag=_tag(stem, _ARCH_PATTERNS),
        archive_kind=kind,
        sha256=sha256,
    )


_NATIVE_KIND_RANK: dict[str, tuple[ArchiveKind, ...]] = {
    "linux": (
        ArchiveKind.TAR_GZ,
        ArchiveKind.TAR_XZ,
        ArchiveKind.TAR_BZ2,
        ArchiveKind.BINARY,
        ArchiveKind.ZIP,
    ),
    "macos": (
        ArchiveKind.TAR_GZ,
        ArchiveKind.ZIP,
        ArchiveKind.TAR_XZ,
        ArchiveKind.TAR_BZ2,
        ArchiveKind.BINARY,
    ),
}


def _token_count(asset: Asset) -> int:
    stem = _stem(asset.name.lower(), asset.archive_kind)
    return len([t for t in re.split(r"[-_.]+", stem) if t])


def compatible_assets(assets: Sequence[Asset], platform: PlatformInfo) -> list[Asset]:
    """Filter by OS, then architecture, and order best match first."""
    release_os = platform.release_os
    if release_os is None:
        return []

    usable = [a for a in assets if a.archive_kind != ArchiveKind.UNSUPPORTED]
    by_os = [a for a in usable if a.os_tag == release_os]

    arch = str(platform.architecture)
    by_arch = [
        a
        for a in by_os
        if (a.arch_tag == arch and arch != "unknown")
        or (a.arch_tag == "universal" and platform.is_macos)
    ]

    ranks = _NATIVE_KIND_RANK.get(release_os, _NATIVE_KIND_RANK["linux"])
    return sorted(
        by_arch,
        key=lambda a: (ranks.index(a.archive_kind), _token_count(a), a.name),
    )


def select_asset(assets: Sequence[Asset], platform: PlatformInfo, *, recipe: str = "") -> Asset:
    """Pick the single asset to install on ``platform``.

    Ties between matching assets break by archive kind native to the platform,
    then fewer extra filename tokens, then filename.

    Raises:
        NoCompatibleAssetError: No asset matches the platform.
    """
    candidates = compatible_assets(assets, platform)
    if not candidates:
        names = ", ".join(sorted(a.name for a in assets)) or "none"
        raise NoCompatibleAssetError(
            recipe or "release",
            f"no asset for {platform.os_family}/{platform.architecture} (assets: {names})",
        )
    return candidates[0]
