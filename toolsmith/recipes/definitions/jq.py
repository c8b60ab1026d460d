"""jq JSON processor.

Release assets are bare binaries (``jq-linux-amd64``, ``jq-macos-arm64``), so
the fetch strategy copies the file straight into place.

GitHub: https://github.com/jqlang/jq
"""

from __future__ import annotations

from toolsmith.recipes.model import Recipe, ReleaseSource

__all__ = ["JQ"]

JQ = Recipe(
    name="jq",
    provides=("jq",),
    package_names={
        "brew": "jq",
        "pkg": "jq",
        "apt": "jq",
        "dnf": "jq",
        "pacman": "jq",
    },
    release=ReleaseSource("jqlang/jq"),
    description="Command-line JSON processor",
)
