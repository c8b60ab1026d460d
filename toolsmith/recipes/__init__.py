"""Recipes: data model, registry and declarations."""

from .loader import iter_recipe_files, load_recipe_file, load_recipes, parse_recipes
from .model import (
    CommandOverride,
    Hook,
    InstallContext,
    InstallProcedure,
    Recipe,
    ReleaseFetcher,
    ReleaseSource,
    RepositoryDescriptor,
)
from .registry import RecipeRegistry

__all__ = [
    # model
    "CommandOverride",
    "Hook",
    "InstallContext",
    "InstallProcedure",
    "Recipe",
    "ReleaseFetcher",
    "ReleaseSource",
    "RepositoryDescriptor",
    # registry
    "RecipeRegistry",
    # loader
    "iter_recipe_files",
    "load_recipe_file",
    "load_recipes",
    "parse_recipes",
]
