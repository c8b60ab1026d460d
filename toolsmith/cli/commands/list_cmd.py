from __future__ import annotations

from pathlib import Path

import typer

from toolsmith.cli.commands._helpers import CONFIG_HELP, RECIPES_HELP
from toolsmith.cli.context import build_context
from toolsmith.output.report import print_recipes


def list_recipes(
    recipes: list[Path] = typer.Option([], "--recipes", help=RECIPES_HELP),
    config: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),
) -> None:
    """List known recipes."""
    ctx = build_context(config_path=config, recipe_paths=recipes)
    print_recipes(ctx.registry.recipes(), ctx.console)
