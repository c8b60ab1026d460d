from __future__ import annotations

from pathlib import Path

import typer

from toolsmith.cli.commands._helpers import (
    CONFIG_HELP,
    RECIPES_HELP,
    VERBOSE_HELP,
    exit_on_registry_error,
    exit_with_code,
)
from toolsmith.cli.context import build_context, build_orchestrator
from toolsmith.core.errors import RegistryError
from toolsmith.output.report import print_plan, print_report


def install(
    names: list[str] = typer.Argument(..., help="Recipes or commands to provision."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the plan without installing."),
    recipes: list[Path] = typer.Option([], "--recipes", help=RECIPES_HELP),
    config: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),
    no_sudo: bool = typer.Option(False, "--no-sudo", help="Never prefix commands with sudo."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_HELP),
) -> None:
    """Install tools and their dependencies; already-correct tools are left alone."""
    ctx = build_context(
        config_path=config, recipe_paths=recipes, verbose=verbose, no_sudo=no_sudo
    )
    orchestrator = build_orchestrator(ctx)

    try:
        if dry_run:
            print_plan(orchestrator.plan(names), ctx.console)
            return
        report = orchestrator.run(names)
    except RegistryError as e:
        exit_on_registry_error(e, ctx)

    print_report(report, ctx.console)
    code = report.exit_code()
    if not code.is_success:
        exit_with_code(int(code))
