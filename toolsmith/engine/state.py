"""Per-run installation state.

``InstallationState`` is derived fresh on every run from live inspection of
the host and is never written anywhere, so idempotency is re-derived rather
than cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

from .versions import Version

__all__ = ["Decision", "InstallationState"]


class Decision(Enum):
    SKIP = auto()
    INSTALL = auto()
    UPGRADE = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class InstallationState:
    """What the host has versus what it should have, for one recipe.

    Attributes:
        recipe_name: Recipe this state is for
        installed: Whether the primary command resolves
        detected_version: Version reported by the installed command, if readable
        target_version: Version to end up with (None means any)
        decision: skip, install or upgrade
        strategy: How the recipe would be installed ("apt", "release", ...)
        command_path: Where the primary command resolved
        error: Why the state could not be fully derived (plan only)
    """

    recipe_name: str
    installed: bool
    detected_version: Version | None
    target_version: Version | None
    decision: Decision
    strategy: str | None = None
    command_path: Path | None = None
    error: str | None = None
