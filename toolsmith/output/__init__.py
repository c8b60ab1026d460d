"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)
from .log import configure_logging
from .report import print_plan, print_platform, print_recipes, print_report, status_style

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
    "configure_logging",
    "print_plan",
    "print_platform",
    "print_recipes",
    "print_report",
    "status_style",
]
