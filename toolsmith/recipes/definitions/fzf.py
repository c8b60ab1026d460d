"""fzf fuzzy finder.

Debian and Ubuntu ship releases too old for the shell integration flags
(``fzf --zsh`` appeared in 0.48). apt is not listed, so those hosts fall
through to the release archive.

GitHub: https://github.com/junegunn/fzf
"""

from __future__ import annotations

from toolsmith.recipes.model import Recipe, ReleaseSource

__all__ = ["FZF"]

FZF = Recipe(
    name="fzf",
    provides=("fzf",),
    package_names={
        "brew": "fzf",
        "pkg": "fzf",
        "dnf": "fzf",
        "pacman": "fzf",
    },
    release=ReleaseSource("junegunn/fzf"),
    min_version="0.48.0",
    description="Command-line fuzzy finder",
)
