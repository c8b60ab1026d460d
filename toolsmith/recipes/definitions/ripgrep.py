"""ripgrep, the ``rg`` recursive search tool.

GitHub: https://github.com/BurntSushi/ripgrep
"""

from __future__ import annotations

from toolsmith.recipes.model import Recipe, ReleaseSource

__all__ = ["RIPGREP"]

RIPGREP = Recipe(
    name="ripgrep",
    provides=("rg",),
    package_names={
        "brew": "ripgrep",
        "pkg": "ripgrep",
        "snap": "ripgrep",
        "apt": "ripgrep",
        "dnf": "ripgrep",
        "pacman": "ripgrep",
    },
    release=ReleaseSource("BurntSushi/ripgrep"),
    description="Recursive regex search",
)
