"""Docker engine (Linux) or Docker Desktop (macOS).

The engine packages come from Docker's own apt and dnf repositories, which
also carry the compose and buildx plugins. On Linux the ``docker mcp`` CLI
plugin is fetched from its GitHub releases after every install; Docker Desktop
ships it already.

Docs: https://docs.docker.com/engine/install/
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import cast

from toolsmith.platform.detection import OSFamily, PlatformInfo
from toolsmith.recipes.model import Recipe, ReleaseFetcher, ReleaseSource, RepositoryDescriptor

__all__ = [
    "DOCKER",
    "DOCKER_APT_REPO",
    "DOCKER_DNF_REPO",
    "MCP_GATEWAY",
    "cli_plugins_dir",
    "install_mcp_gateway",
]

logger = logging.getLogger(__name__)

DOCKER_APT_REPO = RepositoryDescriptor(
    name="docker-apt",
    key_url="https://download.docker.com/linux/%DISTRO%/gpg",
    keyring_path="/etc/apt/keyrings/docker.asc",
    source_line_template=(
        "deb [arch=%ARCH%] https://download.docker.com/linux/%DISTRO% %CODENAME% stable"
    ),
    source_path="/etc/apt/sources.list.d/docker.list",
    applicable_os_families=frozenset({OSFamily.DEBIAN}),
    manager="apt",
)

# Same content as https://download.docker.com/linux/fedora/docker-ce.repo
DOCKER_DNF_REPO = RepositoryDescriptor(
    name="docker-dnf",
    source_line_template="""\
[docker-ce-stable]
name=Docker CE Stable - $basearch
baseurl=https://download.docker.com/linux/fedora/$releasever/$basearch/stable
enabled=1
gpgcheck=1
gpgkey=https://download.docker.com/linux/fedora/gpg
""",
    source_path="/etc/yum.repos.d/docker-ce.repo",
    applicable_os_families=frozenset({OSFamily.FEDORA}),
    manager="dnf",
)

_ENGINE_PACKAGES = (
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
)

MCP_GATEWAY = ReleaseSource("docker/mcp-gateway")


def cli_plugins_dir() -> Path:
    """Per-user CLI plugin directory, ``$DOCKER_CONFIG/cli-plugins``."""
    config = os.environ.get("DOCKER_CONFIG") or Path.home() / ".docker"
    return Path(config) / "cli-plugins"


def install_mcp_gateway(ctx: Mapping[str, object]) -> None:
    platform = cast(PlatformInfo, ctx["platform"])
    if not platform.is_linux:
        return
    releases = cast(ReleaseFetcher, ctx["releases"])
    version = releases.fetch_command("docker", MCP_GATEWAY, "docker-mcp", cli_plugins_dir())
    if version is not None:
        logger.info("Installed docker-mcp %s", version)


DOCKER = Recipe(
    name="docker",
    provides=("docker",),
    package_names={
        "brew-cask": "docker-desktop",
        "apt": _ENGINE_PACKAGES,
        "dnf": _ENGINE_PACKAGES,
        "pacman": ("docker", "docker-buildx", "docker-compose"),
    },
    repo_requirements=(DOCKER_APT_REPO, DOCKER_DNF_REPO),
    hooks={"post_install": install_mcp_gateway},
    description="Container runtime and CLI",
)
