from __future__ import annotations

from pathlib import Path

import typer

from toolsmith.cli.commands._helpers import (
    CONFIG_HELP,
    RECIPES_HELP,
    VERBOSE_HELP,
    exit_on_registry_error,
)
from toolsmith.cli.context import build_context, build_orchestrator
from toolsmith.core.errors import RegistryError
from toolsmith.output.report import print_plan


def plan(
    names: list[str] = typer.Argument(..., help="Recipes or commands to inspect."),
    recipes: list[Path] = typer.Option([], "--recipes", help=RECIPES_HELP),
    config: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_HELP),
) -> None:
    """Show what install would do, in install order."""
    ctx = build_context(config_path=config, recipe_paths=recipes, verbose=verbose)
    try:
        states = build_orchestrator(ctx).plan(names)
    except RegistryError as e:
        exit_on_registry_error(e, ctx)
    print_plan(states, ctx.console)
