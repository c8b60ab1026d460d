"""Recipe registry - holds recipe definitions and orders them for install.

Usage:
    registry = RecipeRegistry()
    registry.register_all(BUILTIN_RECIPES)

    for recipe in registry.resolve_order({"gh", "fzf"}):
        print(recipe.name)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from toolsmith.core.errors import CyclicDependencyError, DuplicateRecipeError, UnknownRecipeError

from .model import Recipe

__all__ = ["RecipeRegistry"]

logger = logging.getLogger(__name__)


class RecipeRegistry:
    """Named recipes plus dependency-ordered resolution.

    Resolution is deterministic: requested names and dependencies are
    visited in sorted order and emitted depth-first post-order, so the same
    registry and request always produce the same sequence.
    """

    def __init__(self, recipes: Iterable[Recipe] = ()) -> None:
        self._recipes: dict[str, Recipe] = {}
        self.register_all(recipes)

    def register(self, recipe: Recipe) -> None:
        """Add a recipe.

        Re-registering an identical recipe is a no-op.

        Raises:
            DuplicateRecipeError: A different recipe already uses this name.
        """
        existing = self._recipes.get(recipe.name)
        if existing is not None:
            if existing == recipe:
                return
            raise DuplicateRecipeError(recipe.name)
        self._recipes[recipe.name] = recipe

    def register_all(self, recipes: Iterable[Recipe]) -> None:
        for recipe in recipes:
            self.register(recipe)

    def get(self, name: str) -> Recipe | None:
        return self._recipes.get(name)

    def names(self) -> list[str]:
        return sorted(self._recipes)

    def recipes(self) -> list[Recipe]:
        return [self._recipes[name] for name in self.names()]

    def find_by_command(self, command: str) -> Recipe | None:
        """Find the recipe providing ``command``, falling back to a recipe of that name."""
        for recipe in self.recipes():
            if command in recipe.provides:
                return recipe
        return self._recipes.get(command)

    def _lookup(self, name: str, required_by: str | None) -> Recipe:
        recipe = self._recipes.get(name)
        if recipe is None and required_by is None:
            recipe = self.find_by_command(name)
        if recipe is None:
            raise UnknownRecipeError(name, required_by)
        return recipe

    def resolve_order(self, requested: Iterable[str]) -> list[Recipe]:
        """Expand the dependency closure of ``requested`` and sort it topologically.

        Requested entries may be recipe names or provided command names.

        Raises:
            UnknownRecipeError: A requested name or dependency is not registered.
            CyclicDependencyError: The closure contains a cycle.
        """
        order: list[Recipe] = []
        done: set[str] = set()
        path: list[str] = []

        def visit(recipe: Recipe) -> None:
            if recipe.name in done:
                return
            if recipe.name in path:
                start = path.index(recipe.name)
                raise CyclicDependencyError([*path[start:], recipe.name])
            path.append(recipe.name)
            for dep in sorted(recipe.depends):
                visit(self._lookup(dep, required_by=recipe.name))
            path.pop()
            done.add(recipe.name)
            order.append(recipe)

        roots = [self._lookup(name, required_by=None) for name in sorted(set(requested))]
        for root in roots:
            visit(root)

        logger.debug("Resolved order: %s", ", ".join(r.name for r in order))
        return order

    def __contains__(self, name: object) -> bool:
        return name in self._recipes

    def __len__(self) -> int:
        return len(self._recipes)

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self.recipes())
