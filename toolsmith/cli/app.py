from __future__ import annotations

import typer

from toolsmith import __version__
from toolsmith.cli.commands.exec_cmd import exec_command
from toolsmith.cli.commands.install import install
from toolsmith.cli.commands.list_cmd import list_recipes
from toolsmith.cli.commands.plan import plan
from toolsmith.cli.commands.platform_cmd import platform

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Declarative, idempotent tool provisioning.",
)


app.command()(install)
app.command()(plan)
app.command("list")(list_recipes)
app.command()(platform)
app.command(
    "exec",
    context_settings={"allow_interspersed_args": False},
)(exec_command)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
