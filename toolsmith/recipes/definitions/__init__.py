"""Built-in recipes.

Usage:
    from toolsmith.recipes.definitions import BUILTIN_RECIPES, get_recipe

    for recipe in BUILTIN_RECIPES:
        print(recipe.name, recipe.provides)

    rg = get_recipe("ripgrep")
"""

from __future__ import annotations

from toolsmith.recipes.model import Recipe

from .curl import CURL
from .docker import DOCKER, DOCKER_APT_REPO, DOCKER_DNF_REPO
from .fzf import FZF
from .gh import GH, GH_APT_REPO
from .git import GIT
from .jq import JQ
from .mise import MISE
from .ripgrep import RIPGREP
from .rust import RUST
from .stow import STOW
from .tmux import TMUX

__all__ = [
    # Recipes
    "CURL",
    "DOCKER",
    "FZF",
    "GH",
    "GIT",
    "JQ",
    "MISE",
    "RIPGREP",
    "RUST",
    "STOW",
    "TMUX",
    # Repositories
    "DOCKER_APT_REPO",
    "DOCKER_DNF_REPO",
    "GH_APT_REPO",
    # Lookup
    "BUILTIN_RECIPES",
    "get_recipe",
]


BUILTIN_RECIPES: tuple[Recipe, ...] = (
    CURL,
    GIT,
    JQ,
    RIPGREP,
    FZF,
    GH,
    DOCKER,
    MISE,
    RUST,
    STOW,
    TMUX,
)

_RECIPES_BY_NAME: dict[str, Recipe] = {recipe.name: recipe for recipe in BUILTIN_RECIPES}


def get_recipe(name: str) -> Recipe | None:
    """Get a built-in recipe by name.

    Example:
        >>> get_recipe("ripgrep").provides
        ('rg',)
    """
    return _RECIPES_BY_NAME.get(name)
