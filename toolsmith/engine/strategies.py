"""Install strategies and their execution.

Strategy precedence for one recipe:

1. ``install_override``, when the recipe declares one
2. the first available package manager (in preference order) for which
   the recipe lists packages
3. a binary release fetch, when the recipe declares a release source

A manager that is present but has no entry for the recipe is passed over in
favour of the next one; a manager invocation that fails fails the recipe.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from toolsmith.core.errors import (
    DownloadError,
    ExtractError,
    InstallCommandError,
    NoInstallStrategyError,
)
from toolsmith.core.result import Err, Ok
from toolsmith.platform.files import make_executable, replace_symlink
from toolsmith.platform.managers import PackageManager, get_manager
from toolsmith.recipes.model import InstallContext, InstallProcedure, Recipe, ReleaseSource

from .assets import ArchiveKind, select_asset
from .versions import parse_version

if TYPE_CHECKING:
    from toolsmith.core.config import EnvironmentConfig
    from toolsmith.platform.detection import PlatformInfo
    from toolsmith.platform.process import CommandRunner
    from toolsmith.sources.archive import Extractor
    from toolsmith.sources.download import Downloader

    from .repos import RepositoryProvisioner
    from .versions import ReleaseVersion, Version, VersionOracle

__all__ = [
    "ManagerStrategy",
    "ReleaseStrategy",
    "OverrideStrategy",
    "Strategy",
    "choose_strategy",
    "Installer",
    "VERSION_PROBE_TIMEOUT",
]

logger = logging.getLogger(__name__)

VERSION_PROBE_TIMEOUT = 15.0


@dataclass(frozen=True, slots=True)
class ManagerStrategy:
    manager: PackageManager
    packages: tuple[str, ...]

    @property
    def id(self) -> str:
        return self.manager.id


@dataclass(frozen=True, slots=True)
class ReleaseStrategy:
    source: ReleaseSource

    @property
    def id(self) -> str:
        return "release"


@dataclass(frozen=True, slots=True)
class OverrideStrategy:
    procedure: InstallProcedure

    @property
    def id(self) -> str:
        return "override"


type Strategy = ManagerStrategy | ReleaseStrategy | OverrideStrategy


def choose_strategy(recipe: Recipe, platform: PlatformInfo) -> Strategy | None:
    """Pick how ``recipe`` would be installed on ``platform``, or None."""
    if recipe.install_override is not None:
        return OverrideStrategy(recipe.install_override)

    for manager_id in platform.available_managers:
        packages = recipe.packages_for(manager_id)
        manager = get_manager(manager_id)
        if packages and manager is not None:
            return ManagerStrategy(manager, packages)

    if recipe.release is not None and platform.release_os is not None:
        return ReleaseStrategy(recipe.release)
    return None


def _find_command(install_dir: Path, command: str) -> Path | None:
    for candidate in (install_dir / command, install_dir / "bin" / command):
        if candidate.is_file():
            return candidate
    matches = sorted(
        (p for p in install_dir.rglob(command) if p.is_file()),
        key=lambda p: (len(p.parts), str(p)),
    )
    return matches[0] if matches else None


class Installer:
    """Executes strategies. One instance per run.

    Index refreshes (``apt-get update`` ...) run at most once per manager per
    run, before that manager's first install, and again after a newly
    registered repository for it.
    """

    def __init__(
        self,
        *,
        platform: PlatformInfo,
        config: EnvironmentConfig,
        runner: CommandRunner,
        oracle: VersionOracle,
        downloader: Downloader,
        extractor: Extractor,
        provisioner: RepositoryProvisioner,
        use_sudo: bool,
    ) -> None:
        self._platform = platform
        self._config = config
        self._runner = runner
        self._oracle = oracle
        self._downloader = downloader
        self._extractor = extractor
        self._provisioner = provisioner
        self._use_sudo = use_sudo
        self._refreshed: set[str] = set()

    def install(self, recipe: Recipe, strategy: Strategy | None) -> None:
        """Install ``recipe`` with ``strategy``.

        Raises:
            RecipeError: Any recipe-scoped failure.
        """
        match strategy:
            case OverrideStrategy(procedure):
                logger.info("Installing %s with its custom procedure", recipe.name)
                procedure(
                    InstallContext(
                        recipe=recipe,
                        platform=self._platform,
                        config=self._config,
                        runner=self._runner,
                        use_sudo=self._use_sudo,
                    )
                )
            case ManagerStrategy(manager, packages):
                self._install_with_manager(recipe, manager, packages)
            case ReleaseStrategy(source):
                self._install_release(recipe, source)
            case None:
                managers = ", ".join(self._platform.available_managers) or "none"
                raise NoInstallStrategyError(
                    recipe.name,
                    f"no install method for {self._platform.os_family} (managers: {managers})",
                )

    def _refresh_index(self, manager: PackageManager) -> None:
        due = manager.id not in self._refreshed or self._provisioner.needs_refresh(manager.id)
        argv = manager.refresh_argv(sudo=self._use_sudo)
        if not due or argv is None:
            return
        logger.info("Refreshing %s package index", manager.id)
        result = self._runner.run(argv)
        if isinstance(result, Err):
            logger.warning("%s index refresh failed: %s", manager.id, result.error.detail)
        self._refreshed.add(manager.id)
        self._provisioner.mark_refreshed(manager.id)

    def _install_with_manager(
        self, recipe: Recipe, manager: PackageManager, packages: tuple[str, ...]
    ) -> None:
        self._refresh_index(manager)
        argv = manager.install_argv(packages, sudo=self._use_sudo)
        logger.info("Installing %s via %s", recipe.name, manager.id)
        result = self._runner.run(argv)
        if isinstance(result, Err):
            detail = f": {result.error.detail}" if result.error.detail else ""
            raise InstallCommandError(recipe.name, f"{result.error}{detail}")

    def _install_release(self, recipe: Recipe, source: ReleaseSource) -> None:
        release = self._oracle.latest_version(source.ref)
        self._fetch_release(
            recipe.name,
            release,
            self._config.opt_dir / recipe.name,
            recipe.provides,
            self._config.bin_dir,
        )

    def _fetch_release(
        self,
        name: str,
        release: ReleaseVersion,
        install_dir: Path,
        commands: Sequence[str],
        link_dir: Path,
    ) -> None:
        """Unpack the platform's asset of ``release``; link ``commands`` into ``link_dir``."""
        asset = select_asset(release.assets, self._platform, recipe=name)
        logger.info("Installing %s %s from %s", name, release.tag, asset.name)

        downloaded = self._downloader.download(asset.url, sha256=asset.sha256)
        if isinstance(downloaded, Err):
            raise DownloadError(name, str(downloaded.error))

        binary_name = commands[0] if asset.archive_kind == ArchiveKind.BINARY else None
        extracted = self._extractor.extract(
            downloaded.value.path,
            install_dir,
            str(asset.archive_kind),
            binary_name=binary_name,
        )
        if isinstance(extracted, Err):
            raise ExtractError(name, str(extracted.error))

        for command in commands:
            path = _find_command(install_dir, command)
            if path is None:
                raise ExtractError(name, f"'{command}' not found in {asset.name}")
            try:
                make_executable(path)
                replace_symlink(link_dir / command, path)
            except OSError as e:
                raise ExtractError(name, f"cannot link {command}: {e}") from e

    def fetch_command(
        self, recipe: str, source: ReleaseSource, command: str, link_dir: Path
    ) -> str | None:
        """Keep ``link_dir/command`` at the latest release of ``source``.

        The payload is unpacked under ``opt_dir/<recipe>-<command>``; only the
        link lands in ``link_dir``, so sibling files there are left alone.
        """
        current: Version | None = None
        link = link_dir / command
        if link.is_file():
            match self._runner.run([str(link), "--version"], timeout=VERSION_PROBE_TIMEOUT):
                case Ok(stdout):
                    current = parse_version(stdout)
                case Err(error):
                    current = parse_version(error.stdout or error.stderr)

        target = self._oracle.resolve_target(source.ref, None, current)
        if current is not None and target == current:
            logger.info("%s %s is up to date", command, current)
            return None

        release = self._oracle.latest_version(source.ref)
        self._fetch_release(
            recipe, release, self._config.opt_dir / f"{recipe}-{command}", (command,), link_dir
        )
        return str(release.version)
