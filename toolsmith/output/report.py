"""Human-readable rendering of runs, plans, recipes and the platform."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from toolsmith.engine.report import RecipeStatus
from toolsmith.engine.state import Decision

from .console import Style

if TYPE_CHECKING:
    from toolsmith.engine.report import RecipeOutcome, RunReport
    from toolsmith.engine.state import InstallationState
    from toolsmith.platform.detection import PlatformInfo
    from toolsmith.recipes.model import Recipe

    from .console import ConsoleProtocol

__all__ = [
    "print_report",
    "print_plan",
    "print_recipes",
    "print_platform",
    "status_style",
]


def status_style(status: RecipeStatus) -> Style:
    match status:
        case RecipeStatus.INSTALLED | RecipeStatus.UPGRADED:
            return Style.SUCCESS
        case RecipeStatus.SKIPPED:
            return Style.DIM
        case RecipeStatus.FAILED:
            return Style.ERROR
        case RecipeStatus.SKIPPED_DEPENDENCY_FAILED | RecipeStatus.NOT_ATTEMPTED:
            return Style.WARNING


def _detail(outcome: RecipeOutcome) -> str:
    if outcome.error_kind:
        return f"{outcome.error_kind}: {outcome.message}"
    return outcome.message


def _outcome_row(outcome: RecipeOutcome) -> tuple[Sequence[str], Style]:
    cells = (
        outcome.recipe,
        str(outcome.status),
        outcome.version or "",
        outcome.strategy or "",
        _detail(outcome),
    )
    return cells, status_style(outcome.status)


def print_report(report: RunReport, console: ConsoleProtocol) -> None:
    """Print one row per recipe, then hook failures and a summary line."""
    for failure in report.prerequisite_failures:
        console.error(f"repository {failure.recipe}: {_detail(failure)}")

    if report.outcomes:
        console.table(
            ("recipe", "status", "version", "via", "detail"),
            [_outcome_row(o) for o in report],
        )

    hook_failures = [*report.hook_failures]
    for outcome in report:
        hook_failures.extend(outcome.hook_failures)
    for hf in hook_failures:
        console.warning(f"hook {hf.hook_name} failed during {hf.event}: {hf.error}")

    changed = len(report.with_status(RecipeStatus.INSTALLED)) + len(
        report.with_status(RecipeStatus.UPGRADED)
    )
    skipped = len(report.with_status(RecipeStatus.SKIPPED))
    summary = f"{changed} changed, {skipped} up to date"
    if report.ok:
        console.success(summary)
        return

    failed = len(report.failed)
    pending = len(report.with_status(RecipeStatus.NOT_ATTEMPTED))
    if pending:
        summary += f", {pending} not attempted"
    console.error(f"{summary}, {failed} failed")


def _plan_action(state: InstallationState) -> str:
    match state.decision:
        case Decision.SKIP:
            return "keep"
        case Decision.INSTALL:
            return "install"
        case Decision.UPGRADE:
            return "upgrade"


def print_plan(states: Iterable[InstallationState], console: ConsoleProtocol) -> None:
    """Print what a run would do, without doing it."""
    rows: list[tuple[Sequence[str], Style]] = []
    for state in states:
        cells = (
            state.recipe_name,
            _plan_action(state),
            str(state.detected_version) if state.detected_version else "",
            str(state.target_version) if state.target_version else "any",
            state.strategy or "none",
            state.error or "",
        )
        if state.error:
            style = Style.ERROR
        elif state.decision == Decision.SKIP:
            style = Style.DIM
        else:
            style = Style.INFO
        rows.append((cells, style))
    console.table(("recipe", "action", "installed", "target", "via", "note"), rows)


def print_recipes(recipes: Iterable[Recipe], console: ConsoleProtocol) -> None:
    rows: list[tuple[Sequence[str], Style]] = []
    for recipe in sorted(recipes, key=lambda r: r.name):
        methods = sorted(recipe.package_names)
        if recipe.release is not None:
            methods.append("release")
        if recipe.install_override is not None:
            methods = ["custom"]
        cells = (
            recipe.name,
            ", ".join(recipe.provides),
            ", ".join(sorted(recipe.depends)),
            ", ".join(methods),
            recipe.description,
        )
        rows.append((cells, Style.DEFAULT))
    console.table(("recipe", "provides", "depends", "methods", "description"), rows)


def print_platform(info: PlatformInfo, console: ConsoleProtocol) -> None:
    console.print(f"os family: {info.os_family}")
    if info.distro_id:
        codename = f" ({info.codename})" if info.codename else ""
        console.print(f"distribution: {info.distro_id}{codename}")
    console.print(f"architecture: {info.architecture} ({info.machine or 'unknown'})")
    managers = ", ".join(info.available_managers) if info.available_managers else "none"
    console.print(f"package managers: {managers}")
    if info.release_os is None:
        console.warning("release downloads are not supported on this platform")
