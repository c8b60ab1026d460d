"""Exit codes and the provisioning error taxonomy.

Exit codes are used as process exit status and should remain stable:
- 0: Success
- 1: User error (unknown recipe, dependency cycle, invalid config/recipe file)
- 2: Environment error (one or more recipes failed to provision)
- 4: Network error (release metadata or downloads unreachable)
- 5: I/O error (filesystem writes failed)

Exceptions come in two families with different blast radius:

- ``RegistryError``: raised while building or resolving the registry.
  Fatal to the run; nothing is installed.
- ``RecipeError``: raised while provisioning one recipe. Caught at the
  orchestrator's per-recipe boundary and recorded in the report under its
  ``kind``; the run continues with independent recipes.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum
from pathlib import Path

__all__ = [
    "ErrorCode",
    "ToolsmithError",
    "RegistryError",
    "CyclicDependencyError",
    "UnknownRecipeError",
    "DuplicateRecipeError",
    "InvalidRecipeError",
    "RecipeLoadError",
    "RecipeError",
    "VersionResolutionError",
    "NoCompatibleAssetError",
    "KeyFetchError",
    "NoInstallStrategyError",
    "VerificationError",
    "RepositoryWriteError",
    "InstallCommandError",
    "DownloadError",
    "ExtractError",
]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @classmethod
    def for_failure_kinds(cls, kinds: set[str]) -> ErrorCode:
        """Pick the exit code for a run whose recipes failed with ``kinds``.

        Network-only failures get NETWORK_ERROR so scripts can retry; any
        other failure is an environment problem.
        """
        if not kinds:
            return cls.OK
        network = {"VersionResolutionError", "DownloadError", "KeyFetchError"}
        if kinds <= network:
            return cls.NETWORK_ERROR
        if kinds == {"RepositoryWriteError"}:
            return cls.IO_ERROR
        return cls.ENV_ERROR


class ToolsmithError(Exception):
    """Base class for all engine errors."""


class RegistryError(ToolsmithError):
    """Registry-time error; aborts the run before any installation."""


class CyclicDependencyError(RegistryError):
    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(f"Dependency cycle: {' -> '.join(self.cycle)}")


class UnknownRecipeError(RegistryError):
    def __init__(self, name: str, required_by: str | None = None) -> None:
        self.name = name
        self.required_by = required_by
        if required_by:
            super().__init__(f"Unknown recipe '{name}' (required by '{required_by}')")
        else:
            super().__init__(f"Unknown recipe '{name}'")


class DuplicateRecipeError(RegistryError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Conflicting definitions for recipe '{name}'")


class InvalidRecipeError(RegistryError):
    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid recipe '{name}': {reason}")


class RecipeLoadError(RegistryError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load recipes from {path}: {reason}")


class RecipeError(ToolsmithError):
    """Recipe-scoped failure.

    Attributes:
        recipe: Name of the recipe that failed
        message: Human-readable detail (no tracebacks, no secrets)
    """

    def __init__(self, recipe: str, message: str) -> None:
        self.recipe = recipe
        self.message = message
        super().__init__(f"{recipe}: {message}")

    @property
    def kind(self) -> str:
        return type(self).__name__


class VersionResolutionError(RecipeError):
    pass


class NoCompatibleAssetError(RecipeError):
    pass


class KeyFetchError(RecipeError):
    pass


class NoInstallStrategyError(RecipeError):
    pass


class VerificationError(RecipeError):
    pass


class RepositoryWriteError(RecipeError):
    pass


class InstallCommandError(RecipeError):
    pass


class DownloadError(RecipeError):
    pass


class ExtractError(RecipeError):
    pass
