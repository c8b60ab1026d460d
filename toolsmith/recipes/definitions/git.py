"""Git version control."""

from __future__ import annotations

from toolsmith.recipes.model import Recipe

__all__ = ["GIT"]

GIT = Recipe(
    name="git",
    provides=("git",),
    package_names={
        "brew": "git",
        "pkg": "git",
        "apt": "git",
        "dnf": "git",
        "pacman": "git",
    },
    description="Distributed version control",
)
