"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from toolsmith.core.errors import ErrorCode, RegistryError

if TYPE_CHECKING:
    from toolsmith.cli.context import CLIContext


def exit_on_registry_error(error: RegistryError, ctx: CLIContext) -> NoReturn:
    """Report a registry-time failure (unknown recipe, cycle) and exit."""
    ctx.console.error(str(error))
    raise typer.Exit(code=int(ErrorCode.USER_ERROR))


def exit_with_code(code: int) -> NoReturn:
    raise typer.Exit(code=code)


RECIPES_HELP = "Extra TOML recipe file or directory (repeatable)."
CONFIG_HELP = "Config file (default: ~/.config/toolsmith/config.toml)."
VERBOSE_HELP = "Show debug logging, including every command run."
