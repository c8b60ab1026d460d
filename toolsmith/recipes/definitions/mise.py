"""mise runtime version manager.

Release archives unpack to ``mise/bin/mise``; the single top-level directory
is flattened on extraction.

GitHub: https://github.com/jdx/mise
"""

from __future__ import annotations

from toolsmith.recipes.model import Recipe, ReleaseSource

__all__ = ["MISE"]

MISE = Recipe(
    name="mise",
    provides=("mise",),
    package_names={"brew": "mise", "pacman": "mise"},
    release=ReleaseSource("jdx/mise"),
    description="Polyglot runtime manager",
)
