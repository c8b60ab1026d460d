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
from toolsmith.core.errors import ErrorCode, RegistryError
from toolsmith.core.result import Err
from toolsmith.output.console import Style
from toolsmith.platform.process import run_interactive


def exec_command(
    command: str = typer.Argument(..., help="Command to run."),
    args: list[str] = typer.Argument(None, help="Arguments passed through to the command."),
    recipes: list[Path] = typer.Option([], "--recipes", help=RECIPES_HELP),
    config: Path | None = typer.Option(None, "--config", help=CONFIG_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_HELP),
) -> None:
    """Run COMMAND, installing the recipe that provides it first if needed.

    Put ``--`` before arguments that start with a dash.
    """
    ctx = build_context(config_path=config, recipe_paths=recipes, verbose=verbose)
    try:
        result = build_orchestrator(ctx).ensure_command(command)
    except RegistryError as e:
        exit_on_registry_error(e, ctx)

    if isinstance(result, Err):
        outcome = result.error
        detail = f"{outcome.error_kind}: {outcome.message}" if outcome.error_kind else ""
        ctx.console.error(f"{command} is not available ({outcome.recipe}: {outcome.status})")
        if detail:
            ctx.console.print(detail, Style.DIM)
        exit_with_code(int(ErrorCode.ENV_ERROR))

    code = run_interactive([str(result.value), *(args or [])])
    if code != 0:
        exit_with_code(code)
