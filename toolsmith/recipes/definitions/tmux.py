"""tmux terminal multiplexer."""

from __future__ import annotations

from toolsmith.recipes.model import Recipe

__all__ = ["TMUX"]

TMUX = Recipe(
    name="tmux",
    provides=("tmux",),
    package_names={
        "brew": "tmux",
        "pkg": "tmux",
        "apt": "tmux",
        "dnf": "tmux",
        "pacman": "tmux",
    },
    version_args=("-V",),
    description="Terminal multiplexer",
)
