"""Console output for commands.

Commands print through ``ConsoleProtocol``: ``RichConsole`` in the CLI,
``MockConsole`` in tests. This module and ``output.log`` are the only places
that import Rich.

Status lines carry a short tag (``OK``, ``error:``, ``warning:``) so they
stay readable with colour off and greppable in CI logs.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
    "tagged",
]

type Row = tuple[Sequence[str], Style]


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()  # plan rows that would change something
    DIM = auto()  # up to date, nothing to do
    BOLD = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


# Tag printed before status messages, per style.
_TAGS: dict[Style, str] = {
    Style.SUCCESS: "OK",
    Style.ERROR: "error:",
    Style.WARNING: "warning:",
}

_RICH_STYLES: dict[Style, str] = {
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.DIM: "dim",
    Style.BOLD: "bold",
    Style.HEADER: "blue bold",
}


def tagged(style: Style, message: str) -> str:
    """``message`` with the tag for ``style`` in front, as plain text."""
    tag = _TAGS.get(style)
    return f"{tag} {message}" if tag else message


class ConsoleProtocol(Protocol):
    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def table(
        self,
        columns: Sequence[str],
        rows: Sequence[Row],
        *,
        title: str | None = None,
    ) -> None:
        """Print rows under column headings; each row carries its own style."""
        ...


class RichConsole:
    """Rich-backed console.

    Messages are never parsed as Rich markup, so recipe names and command
    output containing ``[...]`` print verbatim.

    Args:
        stderr: Write to stderr instead of stdout
        no_color: Disable styling (Rich also honours ``NO_COLOR``)
    """

    def __init__(self, *, stderr: bool = False, no_color: bool = False) -> None:
        from rich.console import Console

        self._console = Console(stderr=stderr, no_color=no_color, highlight=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._console.print(message, style=_RICH_STYLES.get(style), markup=False)

    def _status(self, style: Style, message: str) -> None:
        from rich.text import Text

        line = Text(_TAGS[style], style=_RICH_STYLES[style])
        line.append(" ")
        line.append(message)
        self._console.print(line)

    def success(self, message: str) -> None:
        self._status(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._status(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._status(Style.WARNING, message)

    def table(
        self,
        columns: Sequence[str],
        rows: Sequence[Row],
        *,
        title: str | None = None,
    ) -> None:
        from rich.table import Table

        table = Table(title=title, header_style="bold", title_justify="left", box=None)
        for column in columns:
            table.add_column(column)
        for cells, style in rows:
            table.add_row(*cells, style=_RICH_STYLES.get(style))
        self._console.print(table)


@dataclass(frozen=True, slots=True)
class OutputRecord:
    message: str
    style: Style


@dataclass
class MockConsole:
    """Captures output as ``OutputRecord``s.

    Status messages are stored with their tag (``"OK done"``). A table is
    stored as its optional title, a heading record, then one record per row,
    cells joined by two spaces.
    """

    outputs: list[OutputRecord] = field(default_factory=list)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.print(tagged(Style.SUCCESS, message), Style.SUCCESS)

    def error(self, message: str) -> None:
        self.print(tagged(Style.ERROR, message), Style.ERROR)

    def warning(self, message: str) -> None:
        self.print(tagged(Style.WARNING, message), Style.WARNING)

    def table(
        self,
        columns: Sequence[str],
        rows: Sequence[Row],
        *,
        title: str | None = None,
    ) -> None:
        if title:
            self.print(title, Style.HEADER)
        self.print("  ".join(columns), Style.BOLD)
        for cells, style in rows:
            self.print("  ".join(cells), style)

    def clear(self) -> None:
        self.outputs.clear()

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has(self, style: Style) -> bool:
        return any(o.style == style for o in self.outputs)

    def has_error(self) -> bool:
        return self.has(Style.ERROR)

    def has_warning(self) -> bool:
        return self.has(Style.WARNING)

    def has_success(self) -> bool:
        return self.has(Style.SUCCESS)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style == style)
