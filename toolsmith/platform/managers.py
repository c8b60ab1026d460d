"""Package manager catalogue.

Static data describing every package manager the engine knows how to drive,
in preference order. Availability is decided by the platform resolver (the
binary must resolve on the search path); how a manager is invoked is decided
here.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

__all__ = [
    "PackageManager",
    "MANAGERS",
    "MANAGER_IDS",
    "get_manager",
]


@dataclass(frozen=True, slots=True)
class PackageManager:
    """How to invoke one package manager.

    Attributes:
        id: Key used in recipe ``package_names`` (e.g. "apt", "brew-cask")
        binary: Executable that must resolve for the manager to be available
        install: argv prefix; package names are appended
        refresh: argv that refreshes the package index, if the manager has one
        privileged: Whether install/refresh need root
    """

    id: str
    binary: str
    install: tuple[str, ...]
    refresh: tuple[str, ...] | None = None
    privileged: bool = False

    def install_argv(self, packages: Sequence[str], *, sudo: bool) -> list[str]:
        prefix = ["sudo"] if sudo and self.privileged else []
        return [*prefix, *self.install, *packages]

    def refresh_argv(self, *, sudo: bool) -> list[str] | None:
        if self.refresh is None:
            return None
        prefix = ["sudo"] if sudo and self.privileged else []
        return [*prefix, *self.refresh]


# Preference order: earlier entries win when several are available.
MANAGERS: tuple[PackageManager, ...] = (
    PackageManager("brew", "brew", ("brew", "install"), ("brew", "update")),
    PackageManager("brew-cask", "brew", ("brew", "install", "--cask"), ("brew", "update")),
    PackageManager("pkg", "pkg", ("pkg", "install", "-y"), ("pkg", "update")),
    PackageManager("flatpak", "flatpak", ("flatpak", "install", "-y", "--noninteractive")),
    PackageManager("snap", "snap", ("snap", "install"), privileged=True),
    PackageManager(
        "apt",
        "apt-get",
        ("apt-get", "install", "-y", "-qq"),
        ("apt-get", "update", "-qq"),
        privileged=True,
    ),
    PackageManager("dnf", "dnf", ("dnf", "install", "-y"), ("dnf", "makecache"), privileged=True),
    PackageManager(
        "pacman",
        "pacman",
        ("pacman", "-S", "--noconfirm", "--needed"),
        ("pacman", "-Sy"),
        privileged=True,
    ),
    PackageManager("cargo", "cargo", ("cargo", "install")),
)

MANAGER_IDS: frozenset[str] = frozenset(m.id for m in MANAGERS)

_BY_ID: dict[str, PackageManager] = {m.id: m for m in MANAGERS}


def get_manager(manager_id: str) -> PackageManager | None:
    return _BY_ID.get(manager_id)
