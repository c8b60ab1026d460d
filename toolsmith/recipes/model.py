"""Recipe data model.

A ``Recipe`` is a validated, immutable description of one installable tool:
what it provides, what it depends on and every way it can be obtained. All
validation happens at construction, so a malformed recipe is rejected when it
is declared rather than halfway through a run.

    ripgrep = Recipe(
        name="ripgrep",
        provides=("rg",),
        package_names={"apt": ("ripgrep",), "brew": ("ripgrep",)},
        release=ReleaseSource("BurntSushi/ripgrep"),
    )
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from toolsmith.core.errors import InstallCommandError, InvalidRecipeError
from toolsmith.core.result import Err, Ok
from toolsmith.platform.detection import OSFamily
from toolsmith.platform.managers import MANAGER_IDS
from toolsmith.sources.github import is_valid_repo

if TYPE_CHECKING:
    from pathlib import Path

    from toolsmith.core.config import EnvironmentConfig
    from toolsmith.platform.detection import PlatformInfo
    from toolsmith.platform.process import CommandRunner

__all__ = [
    "Hook",
    "InstallProcedure",
    "InstallContext",
    "ReleaseFetcher",
    "CommandOverride",
    "ReleaseSource",
    "RepositoryDescriptor",
    "Recipe",
    "NAME_PATTERN",
]

NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")
_COMMAND_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+-]*$")

type Hook = Callable[[Mapping[str, object]], None]
type InstallProcedure = Callable[[InstallContext], None]


@dataclass(frozen=True, slots=True)
class InstallContext:
    """What an install override procedure gets to work with."""

    recipe: Recipe
    platform: PlatformInfo
    config: EnvironmentConfig
    runner: CommandRunner
    use_sudo: bool

    def run(
        self,
        argv: Sequence[str],
        *,
        privileged: bool = False,
        input: str | None = None,
    ) -> str:
        """Run a command, raising InstallCommandError on non-zero exit."""
        cmd = ["sudo", *argv] if privileged and self.use_sudo else list(argv)
        match self.runner.run(cmd, input=input):
            case Ok(stdout):
                return stdout
            case Err(error):
                detail = f": {error.detail}" if error.detail else ""
                raise InstallCommandError(self.recipe.name, f"{error}{detail}")


class ReleaseFetcher(Protocol):
    """Release installs for hooks, passed in their context as ``releases``."""

    def fetch_command(
        self, recipe: str, source: ReleaseSource, command: str, link_dir: Path
    ) -> str | None:
        """Install ``command`` from ``source`` and link it into ``link_dir``.

        Returns the installed version, or None when ``link_dir/command``
        already reports the latest one.

        Raises:
            RecipeError: Resolution, download or extraction failed.
        """
        ...


@dataclass(frozen=True, slots=True)
class CommandOverride:
    """Install procedure that runs one fixed argv.

    A value object rather than a closure so that two declarations of the same
    command compare equal.
    """

    argv: tuple[str, ...]
    privileged: bool = False

    def __call__(self, ctx: InstallContext) -> None:
        ctx.run(self.argv, privileged=self.privileged)


@dataclass(frozen=True, slots=True)
class ReleaseSource:
    """Binary releases published on the release-metadata API.

    Attributes:
        repo: ``owner/repo``
        tag: Pin to one release tag instead of following the latest
    """

    repo: str
    tag: str | None = None

    def __post_init__(self) -> None:
        if not is_valid_repo(self.repo):
            raise InvalidRecipeError(self.repo, "release repo must be 'owner/repo'")
        if self.tag is not None and (not self.tag.strip() or "/" in self.tag):
            raise InvalidRecipeError(self.repo, f"invalid release tag {self.tag!r}")

    @property
    def ref(self) -> str:
        """Source reference understood by the version oracle."""
        return f"{self.repo}@{self.tag}" if self.tag else self.repo

    @classmethod
    def parse(cls, ref: str) -> ReleaseSource:
        repo, _, tag = ref.partition("@")
        return cls(repo=repo.strip(), tag=tag.strip() or None)


@dataclass(frozen=True, slots=True)
class RepositoryDescriptor:
    """A trusted package source a manager needs before it can install a tool.

    Attributes:
        name: Identifier used in logs and reports
        source_line_template: Entry text; ``%ARCH%``, ``%CODENAME%``,
            ``%DISTRO%`` and ``%KEYRING%`` are substituted
        source_path: Absolute path of the source entry file
        applicable_os_families: OS families this descriptor is for
        key_url: Where to fetch signing key material (optional)
        keyring_path: Absolute path the key is stored at (optional)
        manager: Manager whose index needs a refresh after registration
    """

    name: str
    source_line_template: str
    source_path: str
    applicable_os_families: frozenset[OSFamily]
    key_url: str | None = None
    keyring_path: str | None = None
    manager: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "applicable_os_families", frozenset(self.applicable_os_families))
        if not NAME_PATTERN.match(self.name):
            raise InvalidRecipeError(self.name, "invalid repository name")
        if not self.source_line_template.strip():
            raise InvalidRecipeError(self.name, "empty source entry")
        if not self.source_path.startswith("/"):
            raise InvalidRecipeError(self.name, "source_path must be absolute")
        if not self.applicable_os_families:
            raise InvalidRecipeError(self.name, "no applicable OS families")
        if (self.key_url is None) != (self.keyring_path is None):
            raise InvalidRecipeError(self.name, "key_url and keyring_path go together")
        if self.keyring_path is not None and not self.keyring_path.startswith("/"):
            raise InvalidRecipeError(self.name, "keyring_path must be absolute")
        if self.manager is not None and self.manager not in MANAGER_IDS:
            raise InvalidRecipeError(self.name, f"unknown manager {self.manager!r}")

    def applies_to(self, os_family: OSFamily) -> bool:
        return os_family in self.applicable_os_families


def _dedupe(items: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def _as_strings(value: str | Iterable[str]) -> tuple[str, ...]:
    return (value,) if isinstance(value, str) else tuple(value)


@dataclass(frozen=True, slots=True)
class Recipe:
    """Declarative description of one installable tool.

    Attributes:
        name: Unique recipe name
        provides: Commands the tool puts on the search path (first is primary)
        depends: Names of recipes that must be provisioned first
        package_names: Manager id -> package names for that manager
        install_override: Custom procedure; supersedes managers and release
        repo_requirements: Package sources to register first, at most one per OS family
        hooks: Event name -> callbacks bound to this recipe
        release: Binary release source for the fetch strategy
        min_version: Lowest acceptable installed version
        version_args: Arguments that make the primary command print its version
        description: One-line summary for listings
    """

    name: str
    provides: tuple[str, ...]
    depends: frozenset[str] = frozenset()
    package_names: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    install_override: InstallProcedure | None = None
    repo_requirements: tuple[RepositoryDescriptor, ...] = ()
    hooks: Mapping[str, tuple[Hook, ...]] = field(default_factory=dict)
    release: ReleaseSource | None = None
    min_version: str | None = None
    version_args: tuple[str, ...] = ("--version",)
    description: str = ""

    def __post_init__(self) -> None:
        # Normalise convenient input shapes (lists, sets, bare strings).
        object.__setattr__(self, "provides", _dedupe(_as_strings(self.provides)))
        object.__setattr__(self, "depends", frozenset(_as_strings(self.depends)))
        object.__setattr__(
            self,
            "package_names",
            {k: _as_strings(v) for k, v in self.package_names.items()},
        )
        object.__setattr__(
            self,
            "hooks",
            {k: (v,) if callable(v) else tuple(v) for k, v in self.hooks.items()},
        )
        object.__setattr__(self, "repo_requirements", tuple(self.repo_requirements))
        object.__setattr__(self, "version_args", tuple(self.version_args))
        self._validate()

    def _validate(self) -> None:
        def fail(reason: str) -> InvalidRecipeError:
            return InvalidRecipeError(self.name or "<unnamed>", reason)

        if not NAME_PATTERN.match(self.name):
            raise fail("name must be lowercase letters, digits, '.', '_' or '-'")
        if not self.provides:
            raise fail("provides must name at least one command")
        for command in self.provides:
            if not _COMMAND_PATTERN.match(command):
                raise fail(f"invalid command name {command!r}")
        if self.name in self.depends:
            raise fail("recipe depends on itself")
        for dep in self.depends:
            if not NAME_PATTERN.match(dep):
                raise fail(f"invalid dependency name {dep!r}")
        for manager, packages in self.package_names.items():
            if manager not in MANAGER_IDS:
                raise fail(f"unknown package manager {manager!r}")
            if not packages or not all(p.strip() for p in packages):
                raise fail(f"empty package list for {manager}")
        if self.install_override is not None and not callable(self.install_override):
            raise fail("install_override must be callable")
        for event, callbacks in self.hooks.items():
            if not event or not all(callable(cb) for cb in callbacks):
                raise fail(f"hooks for {event!r} must be callables")
        seen: set[OSFamily] = set()
        for descriptor in self.repo_requirements:
            overlap = seen & descriptor.applicable_os_families
            if overlap:
                families = ", ".join(sorted(str(f) for f in overlap))
                raise fail(f"more than one repository for {families}")
            seen |= descriptor.applicable_os_families
        if not self.version_args:
            raise fail("version_args cannot be empty")

    @property
    def primary_command(self) -> str:
        return self.provides[0]

    def repo_requirement_for(self, os_family: OSFamily) -> RepositoryDescriptor | None:
        for descriptor in self.repo_requirements:
            if descriptor.applies_to(os_family):
                return descriptor
        return None

    def packages_for(self, manager_id: str) -> tuple[str, ...] | None:
        return self.package_names.get(manager_id)

    def hooks_for(self, event: str) -> tuple[Hook, ...]:
        return self.hooks.get(event, ())

    def __str__(self) -> str:
        return self.name
