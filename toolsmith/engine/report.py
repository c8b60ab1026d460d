"""Run report: one outcome per recipe, in install order."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum, auto

from toolsmith.core.errors import ErrorCode

from .events import HookFailure

__all__ = ["RecipeStatus", "RecipeOutcome", "RunReport"]


class RecipeStatus(Enum):
    INSTALLED = auto()
    UPGRADED = auto()
    SKIPPED = auto()
    FAILED = auto()
    SKIPPED_DEPENDENCY_FAILED = auto()
    NOT_ATTEMPTED = auto()

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_failure(self) -> bool:
        return self in (RecipeStatus.FAILED, RecipeStatus.SKIPPED_DEPENDENCY_FAILED)


@dataclass(frozen=True, slots=True)
class RecipeOutcome:
    """Result of provisioning one recipe.

    Attributes:
        recipe: Recipe name
        status: Final status
        error_kind: Failure class name (e.g. "NoCompatibleAssetError")
        message: Failure or skip detail, already redacted
        version: Version present after the run, if known
        strategy: Strategy that ran ("apt", "release", "override")
        hook_failures: Hooks that raised while this recipe was processed
    """

    recipe: str
    status: RecipeStatus
    error_kind: str | None = None
    message: str = ""
    version: str | None = None
    strategy: str | None = None
    hook_failures: tuple[HookFailure, ...] = ()


@dataclass(slots=True)
class RunReport:
    """Enumerable per-recipe status for one run."""

    outcomes: list[RecipeOutcome] = field(default_factory=list)
    hook_failures: list[HookFailure] = field(default_factory=list)
    prerequisite_failures: list[RecipeOutcome] = field(default_factory=list)

    def add(self, outcome: RecipeOutcome) -> None:
        self.outcomes.append(outcome)

    def get(self, recipe: str) -> RecipeOutcome | None:
        for outcome in self.outcomes:
            if outcome.recipe == recipe:
                return outcome
        return None

    def status_of(self, recipe: str) -> RecipeStatus | None:
        outcome = self.get(recipe)
        return outcome.status if outcome else None

    def with_status(self, status: RecipeStatus) -> list[RecipeOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def failed(self) -> list[RecipeOutcome]:
        return [o for o in (*self.prerequisite_failures, *self.outcomes) if o.status.is_failure]

    @property
    def ok(self) -> bool:
        return not self.failed and not self.with_status(RecipeStatus.NOT_ATTEMPTED)

    def failure_kinds(self) -> set[str]:
        return {o.error_kind for o in self.failed if o.error_kind}

    def exit_code(self) -> ErrorCode:
        if self.ok:
            return ErrorCode.OK
        kinds = self.failure_kinds()
        return ErrorCode.for_failure_kinds(kinds) if kinds else ErrorCode.ENV_ERROR

    def __iter__(self) -> Iterator[RecipeOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)
