from __future__ import annotations

import typer

from toolsmith.cli.context import build_context
from toolsmith.output.report import print_platform


def platform(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    """Show the detected OS family, architecture and package managers."""
    ctx = build_context(verbose=verbose)
    print_platform(ctx.platform, ctx.console)
