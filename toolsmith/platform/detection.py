"""Platform, architecture and package-manager detection.

Classification is split from probing: ``classify_os_family`` and
``classify_architecture`` are pure functions over strings, and
``detect_platform`` gathers those strings from the host. Unrecognised input
maps to a named fallback member rather than a guess.
"""

from __future__ import annotations

import platform as _platform
import shlex
import shutil
import sys as _sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache
from pathlib import Path

from .managers import MANAGERS

__all__ = [
    "OSFamily",
    "Architecture",
    "PlatformInfo",
    "parse_os_release",
    "classify_os_family",
    "classify_architecture",
    "detect_available_managers",
    "detect_platform",
    "detect",
]

Which = Callable[[str], str | None]


class OSFamily(Enum):
    """Operating system family (closed set)."""

    DEBIAN = auto()  # Debian, Ubuntu, Mint, Pop!_OS, ...
    FEDORA = auto()  # Fedora, RHEL, CentOS, Rocky, Alma, ...
    ARCH = auto()  # Arch, Manjaro, EndeavourOS, ...
    MACOS = auto()
    GENERIC = auto()  # Any other POSIX system
    UNKNOWN = auto()  # Not a POSIX host we understand

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def release_os(self) -> str | None:
        """OS name used in release asset filenames."""
        if self == OSFamily.MACOS:
            return "macos"
        if self in (OSFamily.DEBIAN, OSFamily.FEDORA, OSFamily.ARCH, OSFamily.GENERIC):
            return "linux"
        return None

    @classmethod
    def parse(cls, value: str) -> OSFamily:
        """Parse a family name as written in recipe files (e.g. "debian")."""
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown OS family: {value!r}") from None


class Architecture(Enum):
    """CPU architecture."""

    AMD64 = auto()
    ARM64 = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()


_DEBIAN_IDS = frozenset(
    {"debian", "ubuntu", "linuxmint", "pop", "raspbian", "elementary", "kali", "neon", "zorin"}
)
_FEDORA_IDS = frozenset({"fedora", "rhel", "centos", "rocky", "almalinux", "ol", "amzn"})
_ARCH_IDS = frozenset({"arch", "manjaro", "endeavouros", "garuda", "artix"})
_POSIX_PLATFORMS = ("freebsd", "openbsd", "netbsd", "dragonfly", "sunos", "aix", "linux")


def parse_os_release(text: str) -> dict[str, str]:
    """Parse /etc/os-release content into a dict.

    Values may be quoted; malformed lines are skipped.
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        try:
            parts = shlex.split(raw)
        except ValueError:
            continue
        values[key.strip()] = parts[0] if parts else ""
    return values


def classify_os_family(sys_platform: str, os_release: Mapping[str, str] | None) -> OSFamily:
    """Classify the OS family from ``sys.platform`` and parsed os-release.

    ``ID`` is checked before ``ID_LIKE`` so that a derivative that declares
    its own family is not reclassified by its ancestry.
    """
    system = sys_platform.lower()
    if system.startswith("darwin"):
        return OSFamily.MACOS
    if not system.startswith(_POSIX_PLATFORMS):
        return OSFamily.UNKNOWN
    if not system.startswith("linux") or os_release is None:
        return OSFamily.GENERIC

    ids = [os_release.get("ID", "").lower()]
    ids.extend(os_release.get("ID_LIKE", "").lower().split())
    for distro_id in ids:
        if distro_id in _DEBIAN_IDS:
            return OSFamily.DEBIAN
        if distro_id in _FEDORA_IDS:
            return OSFamily.FEDORA
        if distro_id in _ARCH_IDS:
            return OSFamily.ARCH
    return OSFamily.GENERIC


def classify_architecture(machine: str) -> Architecture:
    m = machine.strip().lower()
    if m in ("x86_64", "amd64", "x64"):
        return Architecture.AMD64
    if m in ("aarch64", "arm64", "armv8", "armv8l"):
        return Architecture.ARM64
    return Architecture.UNKNOWN


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    """Detected host platform.

    Attributes:
        os_family: Closed OS family classification
        architecture: CPU architecture
        available_managers: Manager ids whose binary resolves, in preference order
        distro_id: os-release ID (Linux only)
        codename: os-release VERSION_CODENAME (Linux only)
        machine: Raw machine string, kept for diagnostics
    """

    os_family: OSFamily
    architecture: Architecture
    available_managers: tuple[str, ...] = ()
    distro_id: str | None = None
    codename: str | None = None
    machine: str = ""

    @property
    def is_macos(self) -> bool:
        return self.os_family == OSFamily.MACOS

    @property
    def is_linux(self) -> bool:
        return self.release_os == "linux"

    @property
    def release_os(self) -> str | None:
        return self.os_family.release_os

    def has_manager(self, manager_id: str) -> bool:
        return manager_id in self.available_managers

    def __str__(self) -> str:
        managers = ",".join(self.available_managers) or "none"
        return f"{self.os_family}-{self.architecture} (managers: {managers})"


def detect_available_managers(which: Which = shutil.which) -> tuple[str, ...]:
    """Return ids of managers whose binary is on the search path."""
    return tuple(m.id for m in MANAGERS if which(m.binary) is not None)


def _read_os_release(path: Path) -> dict[str, str] | None:
    try:
        return parse_os_release(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return None


def detect_platform(
    *,
    which: Which = shutil.which,
    sys_platform: str | None = None,
    machine: str | None = None,
    os_release_path: Path = Path("/etc/os-release"),
) -> PlatformInfo:
    """Detect the host platform. Never raises.

    All probes are injectable for tests.
    """
    system = sys_platform if sys_platform is not None else _sys.platform
    raw_machine = machine if machine is not None else _platform.machine()
    os_release = _read_os_release(os_release_path) if system.startswith("linux") else None

    return PlatformInfo(
        os_family=classify_os_family(system, os_release),
        architecture=classify_architecture(raw_machine),
        available_managers=detect_available_managers(which),
        distro_id=(os_release or {}).get("ID") or None,
        codename=(os_release or {}).get("VERSION_CODENAME")
        or (os_release or {}).get("UBUNTU_CODENAME")
        or None,
        machine=raw_machine,
    )


@lru_cache(maxsize=1)
def detect() -> PlatformInfo:
    """Detect the host platform once per process (cached)."""
    return detect_platform()
