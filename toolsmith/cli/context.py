"""Per-invocation CLI state: config, platform, registry and console."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path

import typer

from toolsmith.core.config import EnvironmentConfig, load_config
from toolsmith.core.errors import ErrorCode, RegistryError
from toolsmith.core.result import Err
from toolsmith.engine.orchestrator import Orchestrator
from toolsmith.output.console import ConsoleProtocol, RichConsole
from toolsmith.output.log import configure_logging
from toolsmith.platform.detection import PlatformInfo, detect
from toolsmith.recipes.definitions import BUILTIN_RECIPES
from toolsmith.recipes.loader import load_recipes
from toolsmith.recipes.registry import RecipeRegistry


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: EnvironmentConfig
    platform: PlatformInfo
    registry: RecipeRegistry
    console: ConsoleProtocol


def build_registry(recipe_paths: Sequence[Path]) -> RecipeRegistry:
    """Built-in recipes plus those declared in ``recipe_paths``.

    A file recipe replaces the built-in recipe of the same name. Two files
    declaring different recipes under one name still conflict.

    Raises:
        RegistryError: A file could not be loaded or recipes conflict.
    """
    declared = load_recipes(recipe_paths)
    replaced = {recipe.name for recipe in declared}
    registry = RecipeRegistry(r for r in BUILTIN_RECIPES if r.name not in replaced)
    registry.register_all(declared)
    return registry


def build_context(
    *,
    config_path: Path | None = None,
    recipe_paths: Sequence[Path] = (),
    verbose: bool = False,
    no_sudo: bool = False,
) -> CLIContext:
    configure_logging(verbose=verbose)

    config_result = load_config(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    config = config_result.value
    if no_sudo:
        config = replace(config, use_sudo=False)

    try:
        registry = build_registry([*config.recipe_paths, *recipe_paths])
    except RegistryError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR)) from e

    return CLIContext(
        config=config,
        platform=detect(),
        registry=registry,
        console=RichConsole(),
    )


def build_orchestrator(ctx: CLIContext) -> Orchestrator:
    return Orchestrator(ctx.registry, ctx.config, platform=ctx.platform)
