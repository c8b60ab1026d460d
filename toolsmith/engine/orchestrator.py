"""Installer orchestrator.

Composes platform detection, version resolution, repository provisioning and
install strategies into one sequential run over the dependency-ordered
recipe list.

Per recipe:
1. derive InstallationState (installed? which version? which target?)
2. skip when nothing needs to change
3. register the recipe's repository for this OS family, if any
4. fire ``pre_install`` hooks
5. install with the chosen strategy
6. verify the provided commands resolve at an acceptable version
7. fire ``post_install`` hooks

A recipe-scoped failure is recorded and the run moves on; recipes that depend
on a failed recipe are marked and never attempted.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from pathlib import Path
from urllib.parse import urlparse

from toolsmith.core.config import EnvironmentConfig
from toolsmith.core.errors import (
    RecipeError,
    UnknownRecipeError,
    VerificationError,
)
from toolsmith.core.result import Err, Ok, Result
from toolsmith.platform.detection import PlatformInfo, detect
from toolsmith.platform.files import resolve_command
from toolsmith.platform.process import CommandRunner, SubprocessRunner, is_root
from toolsmith.recipes.model import Hook, Recipe, RepositoryDescriptor
from toolsmith.recipes.registry import RecipeRegistry
from toolsmith.sources.archive import Extractor
from toolsmith.sources.download import Downloader
from toolsmith.sources.github import GitHubReleases
from toolsmith.sources.http import HttpClient, RealHttpClient

from .events import (
    POST_DEPENDENCY_RESOLUTION,
    POST_INSTALL,
    PRE_DEPENDENCY_RESOLUTION,
    PRE_INSTALL,
    EventBus,
    HookFailure,
)
from .repos import HostFiles, LocalHostFiles, RepositoryProvisioner
from .report import RecipeOutcome, RecipeStatus, RunReport
from .state import Decision, InstallationState
from .strategies import (
    VERSION_PROBE_TIMEOUT,
    Installer,
    ReleaseStrategy,
    Strategy,
    choose_strategy,
)
from .versions import Version, VersionOracle, parse_version

__all__ = ["Orchestrator", "build_http_client"]

logger = logging.getLogger(__name__)


def build_http_client(config: EnvironmentConfig) -> RealHttpClient:
    """HTTP client configured from ``config``; the token is only sent to the API host."""
    return RealHttpClient(
        timeout=config.http_timeout,
        token=config.github_token,
        token_hosts=(urlparse(config.github_api_url).netloc,),
        retries=config.http_retries,
        backoff=config.retry_backoff,
    )


class _Run:
    """Collaborators that live for exactly one run or plan."""

    def __init__(self, owner: Orchestrator) -> None:
        self.oracle = VersionOracle(GitHubReleases(owner.http, owner.config.github_api_url))
        self.provisioner = RepositoryProvisioner(owner.http, owner.files)
        self.installer = Installer(
            platform=owner.platform,
            config=owner.config,
            runner=owner.runner,
            oracle=self.oracle,
            downloader=Downloader(owner.http, owner.config.download_cache_dir),
            extractor=Extractor(),
            provisioner=self.provisioner,
            use_sudo=owner.use_sudo,
        )


class Orchestrator:
    """Runs provisioning for a requested set of recipes.

    Every collaborator can be injected; defaults talk to the real host.
    """

    def __init__(
        self,
        registry: RecipeRegistry,
        config: EnvironmentConfig,
        *,
        platform: PlatformInfo | None = None,
        http: HttpClient | None = None,
        runner: CommandRunner | None = None,
        bus: EventBus | None = None,
        files: HostFiles | None = None,
        prerequisites: Sequence[RepositoryDescriptor] = (),
        use_sudo: bool | None = None,
        resolve: Callable[[str], Path | None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self.config = config
        self.platform = platform if platform is not None else detect()
        self.http = http if http is not None else build_http_client(config)
        self.runner = runner if runner is not None else SubprocessRunner()
        self.bus = bus if bus is not None else EventBus()
        self.use_sudo = use_sudo if use_sudo is not None else config.use_sudo and not is_root()
        self.files = (
            files
            if files is not None
            else LocalHostFiles(config, self.runner, use_sudo=self.use_sudo)
        )
        self.prerequisites = tuple(prerequisites)
        self._resolve = resolve or (lambda cmd: resolve_command(cmd, (config.bin_dir,)))
        self._clock = clock

    # -- inspection ---------------------------------------------------------

    def _redact(self, text: str) -> str:
        for secret in self.config.secrets():
            text = text.replace(secret, "***")
        return text

    def installed_version(self, recipe: Recipe) -> tuple[Path | None, Version | None]:
        """Resolve the recipe's commands and read the primary command's version.

        Returns (None, None) unless every provided command resolves.
        """
        paths = [self._resolve(command) for command in recipe.provides]
        primary = paths[0]
        if primary is None or any(p is None for p in paths):
            return None, None
        result = self.runner.run(
            [str(primary), *recipe.version_args], timeout=VERSION_PROBE_TIMEOUT
        )
        match result:
            case Ok(stdout):
                return primary, parse_version(stdout)
            case Err(error):
                return primary, parse_version(error.stdout or error.stderr)

    def _assess(
        self, recipe: Recipe, run: _Run
    ) -> tuple[InstallationState, Strategy | None]:
        path, detected = self.installed_version(recipe)
        strategy = choose_strategy(recipe, self.platform)
        # Only a release fetch can deliver "latest"; managers own their versions.
        source_ref = strategy.source.ref if isinstance(strategy, ReleaseStrategy) else None

        if path is not None:
            if detected is None:
                # Present but the version cannot be read: nothing to check against.
                decision, target = Decision.SKIP, None
            else:
                target = run.oracle.resolve_target(source_ref, recipe.min_version, detected)
                decision = Decision.SKIP if target == detected else Decision.UPGRADE
        else:
            target = run.oracle.resolve_target(source_ref, recipe.min_version, None)
            decision = Decision.INSTALL

        state = InstallationState(
            recipe_name=recipe.name,
            installed=path is not None,
            detected_version=detected,
            target_version=target,
            decision=decision,
            strategy=strategy.id if strategy is not None else None,
            command_path=path,
        )
        return state, strategy

    def assess(self, recipe: Recipe) -> InstallationState:
        """Derive the InstallationState for one recipe, with no mutation."""
        state, _ = self._assess(recipe, _Run(self))
        return state

    def plan(self, requested: Iterable[str]) -> list[InstallationState]:
        """Dry run: resolve order and derive every state without mutating the host.

        Raises:
            RegistryError: Unknown recipe or dependency cycle.
        """
        run = _Run(self)
        states: list[InstallationState] = []
        for recipe in self.registry.resolve_order(requested):
            try:
                state, _ = self._assess(recipe, run)
            except RecipeError as e:
                path, detected = self.installed_version(recipe)
                strategy = choose_strategy(recipe, self.platform)
                state = InstallationState(
                    recipe_name=recipe.name,
                    installed=path is not None,
                    detected_version=detected,
                    target_version=None,
                    decision=Decision.SKIP if path is not None else Decision.INSTALL,
                    strategy=strategy.id if strategy is not None else None,
                    command_path=path,
                    error=f"{e.kind}: {self._redact(e.message)}",
                )
            states.append(state)
        return states

    # -- execution ----------------------------------------------------------

    def _verify(self, recipe: Recipe, required: Version | None) -> Version | None:
        for command in recipe.provides:
            if self._resolve(command) is None:
                raise VerificationError(recipe.name, f"'{command}' not found after install")
        _, version = self.installed_version(recipe)
        if required is not None and version is not None and version < required:
            raise VerificationError(
                recipe.name, f"installed version {version} is below required {required}"
            )
        return version

    def _fire(
        self, event: str, context: dict[str, object], bound: Iterable[Hook] = ()
    ) -> list[HookFailure]:
        return self.bus.fire(event, context, bound=bound, redact=self._redact)

    def _context(self, recipe: Recipe, run: _Run, **extra: object) -> dict[str, object]:
        return {
            "recipe": recipe.name,
            "releases": run.installer,
            "platform": self.platform,
            "config": self.config,
            "runner": self.runner,
            "use_sudo": self.use_sudo,
            **extra,
        }

    def _provision(self, recipe: Recipe, run: _Run) -> tuple[RecipeOutcome, list[HookFailure]]:
        hook_failures: list[HookFailure] = []
        strategy_id: str | None = None
        try:
            state, strategy = self._assess(recipe, run)
            strategy_id = state.strategy
            if state.decision == Decision.SKIP:
                logger.info("%s is up to date", recipe.name)
                version = str(state.detected_version) if state.detected_version else None
                return RecipeOutcome(recipe.name, RecipeStatus.SKIPPED, version=version), []

            descriptor = recipe.repo_requirement_for(self.platform.os_family)
            if descriptor is not None:
                run.provisioner.ensure_repository(descriptor, self.platform)

            hook_failures += self._fire(
                PRE_INSTALL,
                self._context(recipe, run, state=state),
                recipe.hooks_for(PRE_INSTALL),
            )

            run.installer.install(recipe, strategy)
            version = self._verify(recipe, state.target_version)
        except RecipeError as e:
            logger.error("%s failed: %s", recipe.name, self._redact(str(e)))
            outcome = RecipeOutcome(
                recipe.name,
                RecipeStatus.FAILED,
                error_kind=e.kind,
                message=self._redact(e.message),
                strategy=strategy_id,
            )
            return outcome, hook_failures
        except Exception as e:  # noqa: BLE001
            # Override procedures are arbitrary code; whatever they raise stays scoped here.
            kind = type(e).__name__
            logger.error("%s failed: %s: %s", recipe.name, kind, self._redact(str(e)))
            outcome = RecipeOutcome(
                recipe.name,
                RecipeStatus.FAILED,
                error_kind=kind,
                message=self._redact(str(e)),
                strategy=strategy_id,
            )
            return outcome, hook_failures

        upgraded = state.decision == Decision.UPGRADE
        status = RecipeStatus.UPGRADED if upgraded else RecipeStatus.INSTALLED
        outcome = RecipeOutcome(
            recipe.name,
            status,
            version=str(version) if version else None,
            strategy=strategy_id,
        )
        return outcome, hook_failures

    def _ensure_prerequisites(self, run: _Run, report: RunReport) -> None:
        for descriptor in self.prerequisites:
            if not descriptor.applies_to(self.platform.os_family):
                continue
            try:
                run.provisioner.ensure_repository(descriptor, self.platform)
            except RecipeError as e:
                logger.error("Prerequisite %s failed: %s", descriptor.name, self._redact(str(e)))
                report.prerequisite_failures.append(
                    RecipeOutcome(
                        descriptor.name,
                        RecipeStatus.FAILED,
                        error_kind=e.kind,
                        message=self._redact(e.message),
                    )
                )

    def run(self, requested: Iterable[str]) -> RunReport:
        """Provision ``requested`` recipes and their dependencies.

        Raises:
            RegistryError: Unknown recipe or dependency cycle (nothing installed).
        """
        names = sorted(set(requested))
        report = RunReport()
        started = self._clock()
        deadline = started + self.config.run_timeout if self.config.run_timeout else None

        report.hook_failures += self._fire(
            PRE_DEPENDENCY_RESOLUTION, {"requested": names, "platform": self.platform}
        )
        ordered = self.registry.resolve_order(names)

        run = _Run(self)
        self._ensure_prerequisites(run, report)
        report.hook_failures += self._fire(
            POST_DEPENDENCY_RESOLUTION,
            {"order": [r.name for r in ordered], "platform": self.platform},
        )

        failed: set[str] = set()
        timed_out = False
        for index, recipe in enumerate(ordered):
            hook_failures: list[HookFailure] = []
            if not timed_out and deadline is not None and self._clock() >= deadline:
                logger.warning(
                    "Run timeout reached; %d recipe(s) not attempted", len(ordered) - index
                )
                timed_out = True

            blocked = sorted(dep for dep in recipe.depends if dep in failed)
            if timed_out:
                outcome = RecipeOutcome(
                    recipe.name, RecipeStatus.NOT_ATTEMPTED, message="run timeout reached"
                )
            elif blocked:
                outcome = RecipeOutcome(
                    recipe.name,
                    RecipeStatus.SKIPPED_DEPENDENCY_FAILED,
                    message=f"dependency failed: {', '.join(blocked)}",
                )
            else:
                outcome, hook_failures = self._provision(recipe, run)

            # Bus hooks see every outcome; the recipe's own hooks only real installs.
            installed = outcome.status in (RecipeStatus.INSTALLED, RecipeStatus.UPGRADED)
            hook_failures += self._fire(
                POST_INSTALL,
                self._context(recipe, run, status=outcome.status, outcome=outcome),
                recipe.hooks_for(POST_INSTALL) if installed else (),
            )
            if hook_failures:
                outcome = replace(
                    outcome, hook_failures=(*outcome.hook_failures, *hook_failures)
                )
            if outcome.status.is_failure:
                failed.add(recipe.name)
            report.add(outcome)

        return report

    def ensure_command(self, command: str) -> Result[Path, RecipeOutcome]:
        """Make ``command`` available, provisioning its recipe if needed.

        Raises:
            UnknownRecipeError: No recipe provides ``command``.
        """
        path = self._resolve(command)
        if path is not None:
            return Ok(path)

        recipe = self.registry.find_by_command(command)
        if recipe is None:
            raise UnknownRecipeError(command)

        report = self.run([recipe.name])
        outcome = report.get(recipe.name)
        path = self._resolve(command)
        if path is not None:
            return Ok(path)
        if outcome is None:
            outcome = RecipeOutcome(recipe.name, RecipeStatus.NOT_ATTEMPTED)
        return Err(outcome)

