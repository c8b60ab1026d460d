"""GitHub CLI.

Debian-family hosts need GitHub's own apt source; Fedora and Arch carry the
package in their main repositories.

GitHub: https://github.com/cli/cli
"""

from __future__ import annotations

from toolsmith.platform.detection import OSFamily
from toolsmith.recipes.model import Recipe, ReleaseSource, RepositoryDescriptor

__all__ = ["GH", "GH_APT_REPO"]

GH_APT_REPO = RepositoryDescriptor(
    name="github-cli",
    key_url="https://cli.github.com/packages/githubcli-archive-keyring.gpg",
    keyring_path="/etc/apt/keyrings/githubcli-archive-keyring.gpg",
    source_line_template="deb [arch=%ARCH%] https://cli.github.com/packages stable main",
    source_path="/etc/apt/sources.list.d/github-cli.list",
    applicable_os_families=frozenset({OSFamily.DEBIAN}),
    manager="apt",
)

GH = Recipe(
    name="gh",
    provides=("gh",),
    package_names={
        "brew": "gh",
        "pkg": "gh",
        "apt": "gh",
        "dnf": "gh",
        "pacman": "github-cli",
    },
    repo_requirements=(GH_APT_REPO,),
    release=ReleaseSource("cli/cli"),
    description="GitHub on the command line",
)
