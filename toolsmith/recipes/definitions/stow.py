"""GNU Stow symlink farm manager."""

from __future__ import annotations

from toolsmith.recipes.model import Recipe

__all__ = ["STOW"]

STOW = Recipe(
    name="stow",
    provides=("stow",),
    package_names={
        "brew": "stow",
        "pkg": "stow",
        "apt": "stow",
        "dnf": "stow",
        "pacman": "stow",
    },
    description="Symlink farm manager",
)
