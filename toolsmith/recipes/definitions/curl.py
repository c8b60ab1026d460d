"""curl: HTTP client used by several install scripts."""

from __future__ import annotations

from toolsmith.recipes.model import Recipe

__all__ = ["CURL"]

CURL = Recipe(
    name="curl",
    provides=("curl",),
    package_names={
        "brew": "curl",
        "pkg": "curl",
        "apt": "curl",
        "dnf": "curl",
        "pacman": "curl",
    },
    description="Command-line HTTP client",
)
