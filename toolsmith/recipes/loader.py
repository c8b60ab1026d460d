"""Recipe declarations from TOML files.

A file holds any number of ``[[recipe]]`` tables:

    [[recipe]]
    name = "bat"
    provides = ["bat"]
    depends = ["curl"]
    min_version = "0.24"
    release = "sharkdp/bat"            # or a [recipe.release] table

    [recipe.packages]
    brew = "bat"
    apt = ["bat"]

    [[recipe.repository]]
    name = "example-apt"
    os_families = ["debian"]
    source = "deb https://example.com/apt %CODENAME% main"
    source_path = "/etc/apt/sources.list.d/example.list"
    key_url = "https://example.com/key.gpg"
    keyring = "/etc/apt/keyrings/example.gpg"
    manager = "apt"

``install_command`` (an argv list) becomes the recipe's install override.
Anything malformed raises ``RecipeLoadError`` naming the file.
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

from toolsmith.core.errors import InvalidRecipeError, RecipeLoadError
from toolsmith.core.structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_list,
    get_str,
    get_str_list,
    get_table,
)
from toolsmith.platform.detection import OSFamily

from .model import CommandOverride, Recipe, ReleaseSource, RepositoryDescriptor

__all__ = [
    "iter_recipe_files",
    "load_recipe_file",
    "load_recipes",
    "parse_recipes",
]

logger = logging.getLogger(__name__)

_RECIPE_KEYS = frozenset(
    {
        "name",
        "provides",
        "depends",
        "packages",
        "release",
        "min_version",
        "version_args",
        "description",
        "install_command",
        "install_privileged",
        "repository",
    }
)


class _Invalid(ValueError):
    pass


def _str_or_list(table: Mapping[str, object], key: str) -> tuple[str, ...]:
    if table.get(key) is None:
        return ()
    items = get_str_list(table, key)
    if items is None:
        raise _Invalid(f"'{key}' must be a string or a list of strings")
    return tuple(items)


def _required_str(table: Mapping[str, object], key: str, where: str) -> str:
    value = get_str(table, key)
    if not value:
        raise _Invalid(f"{where}: '{key}' is required")
    return value


def _parse_release(raw: object) -> ReleaseSource | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return ReleaseSource.parse(raw)
    table = as_str_dict(raw)
    if table is None:
        raise _Invalid("'release' must be 'owner/repo' or a table")
    return ReleaseSource(
        repo=_required_str(table, "repo", "release"),
        tag=get_str(table, "tag"),
    )


def _parse_repository(table: StrDict, recipe: str) -> RepositoryDescriptor:
    where = f"{recipe} repository"
    families: set[OSFamily] = set()
    for value in _str_or_list(table, "os_families"):
        try:
            families.add(OSFamily.parse(value))
        except ValueError as e:
            raise _Invalid(f"{where}: {e}") from e
    return RepositoryDescriptor(
        name=_required_str(table, "name", where),
        source_line_template=_required_str(table, "source", where),
        source_path=_required_str(table, "source_path", where),
        applicable_os_families=frozenset(families),
        key_url=get_str(table, "key_url"),
        keyring_path=get_str(table, "keyring"),
        manager=get_str(table, "manager"),
    )


def _parse_recipe(table: StrDict) -> Recipe:
    name = _required_str(table, "name", "recipe")
    unknown = sorted(set(table) - _RECIPE_KEYS)
    if unknown:
        raise _Invalid(f"{name}: unknown keys {', '.join(unknown)}")

    packages: dict[str, tuple[str, ...]] = {}
    packages_table = table.get("packages")
    if packages_table is not None:
        parsed = as_str_dict(packages_table)
        if parsed is None:
            raise _Invalid(f"{name}: 'packages' must be a table")
        for manager in parsed:
            packages[manager] = _str_or_list(parsed, manager)

    override = None
    install_command = _str_or_list(table, "install_command")
    if install_command:
        override = CommandOverride(
            argv=install_command,
            privileged=get_bool(table, "install_privileged") or False,
        )

    repositories = []
    for entry in get_list(table, "repository") or []:
        repo_table = as_str_dict(entry)
        if repo_table is None:
            raise _Invalid(f"{name}: each [[recipe.repository]] must be a table")
        repositories.append(_parse_repository(repo_table, name))

    version_args = _str_or_list(table, "version_args") or ("--version",)

    return Recipe(
        name=name,
        provides=_str_or_list(table, "provides"),
        depends=frozenset(_str_or_list(table, "depends")),
        package_names=packages,
        install_override=override,
        repo_requirements=tuple(repositories),
        release=_parse_release(table.get("release")),
        min_version=get_str(table, "min_version"),
        version_args=version_args,
        description=get_str(table, "description") or "",
    )


def parse_recipes(data: Mapping[str, object], path: Path) -> list[Recipe]:
    """Build recipes from an already-parsed TOML document.

    Raises:
        RecipeLoadError: Structure is wrong or a recipe fails validation.
    """
    entries = get_list(data, "recipe")
    if entries is None:
        if "recipe" in data:
            raise RecipeLoadError(path, "'recipe' must be an array of tables ([[recipe]])")
        return []

    recipes: list[Recipe] = []
    for index, entry in enumerate(entries):
        table = as_str_dict(entry)
        if table is None:
            raise RecipeLoadError(path, f"recipe #{index + 1} is not a table")
        try:
            recipes.append(_parse_recipe(table))
        except (_Invalid, InvalidRecipeError) as e:
            raise RecipeLoadError(path, str(e)) from e
    return recipes


def load_recipe_file(path: Path) -> list[Recipe]:
    """Read and parse one TOML recipe file.

    Raises:
        RecipeLoadError: The file is unreadable, not TOML, or malformed.
    """
    try:
        data_obj: object = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise RecipeLoadError(path, "file not found") from e
    except (OSError, UnicodeDecodeError) as e:
        raise RecipeLoadError(path, str(e)) from e
    except tomllib.TOMLDecodeError as e:
        raise RecipeLoadError(path, f"invalid TOML: {e}") from e

    data = as_str_dict(data_obj)
    if data is None:
        raise RecipeLoadError(path, "root must be a table")
    recipes = parse_recipes(data, path)
    logger.debug("Loaded %d recipe(s) from %s", len(recipes), path)
    return recipes


def iter_recipe_files(paths: Iterable[Path]) -> Iterator[Path]:
    """Expand directories to their ``*.toml`` files, in sorted order."""
    for path in paths:
        if path.is_dir():
            yield from sorted(p for p in path.glob("*.toml") if p.is_file())
        else:
            yield path


def load_recipes(paths: Iterable[Path]) -> list[Recipe]:
    """Load every recipe from ``paths`` (files or directories)."""
    recipes: list[Recipe] = []
    for path in iter_recipe_files(paths):
        recipes.extend(load_recipe_file(path))
    return recipes
