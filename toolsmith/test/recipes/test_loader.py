"""Tests for recipes/loader.py - TOML recipe files."""

from pathlib import Path

import pytest

from toolsmith.core.errors import RecipeLoadError
from toolsmith.platform.detection import OSFamily
from toolsmith.recipes.loader import iter_recipe_files, load_recipe_file, load_recipes
from toolsmith.recipes.model import CommandOverride, ReleaseSource

FULL = """
[[recipe]]
name = "bat"
provides = ["bat"]
depends = "curl"
min_version = "0.24"
release = "sharkdp/bat"
description = "cat with wings"

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

[[recipe]]
name = "custom"
provides = "custom"
install_command = ["sh", "-c", "make install"]
install_privileged = true
version_args = ["version"]

[recipe.release]
repo = "example/custom"
tag = "v1.0.0"
"""


def _write(tmp_path: Path, text: str, name: str = "recipes.toml") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadRecipeFile:
    """Tests for load_recipe_file."""

    def test_full_file(self, tmp_path: Path) -> None:
        bat, custom = load_recipe_file(_write(tmp_path, FULL))

        assert bat.name == "bat"
        assert bat.depends == frozenset({"curl"})
        assert bat.packages_for("brew") == ("bat",)
        assert bat.packages_for("apt") == ("bat",)
        assert bat.release == ReleaseSource("sharkdp/bat")
        assert bat.min_version == "0.24"
        assert bat.version_args == ("--version",)
        assert bat.description == "cat with wings"
        repo = bat.repo_requirement_for(OSFamily.DEBIAN)
        assert repo is not None
        assert repo.keyring_path == "/etc/apt/keyrings/example.gpg"
        assert repo.manager == "apt"

        assert custom.provides == ("custom",)
        assert custom.install_override == CommandOverride(
            argv=("sh", "-c", "make install"), privileged=True
        )
        assert custom.release == ReleaseSource("example/custom", "v1.0.0")
        assert custom.version_args == ("version",)

    def test_empty_file(self, tmp_path: Path) -> None:
        assert load_recipe_file(_write(tmp_path, "")) == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(RecipeLoadError, match="file not found"):
            load_recipe_file(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        with pytest.raises(RecipeLoadError, match="invalid TOML"):
            load_recipe_file(_write(tmp_path, "[[recipe]\nname ="))

    def test_recipe_must_be_array(self, tmp_path: Path) -> None:
        with pytest.raises(RecipeLoadError, match="array of tables"):
            load_recipe_file(_write(tmp_path, '[recipe]\nname = "x"\n'))

    @pytest.mark.parametrize(
        ("body", "reason"),
        [
            ('provides = ["x"]', "'name' is required"),
            ('name = "x"\nprovides = ["x"]\ncolour = "red"', "unknown keys colour"),
            ('name = "x"\nprovides = [1]', "'provides' must be a string or a list"),
            ('name = "x"\nprovides = ["x"]\npackages = "apt"', "'packages' must be a table"),
            ('name = "x"\nprovides = ["x"]\nrelease = 3', "'release' must be"),
            ('name = "x"\nprovides = ["x"]\nrelease = "nope"', "owner/repo"),
            ('name = "x"', "provides must name at least one command"),
            ('name = "x"\nprovides = ["x"]\npackages = { zypper = "x" }', "unknown package"),
        ],
    )
    def test_invalid_recipe(self, tmp_path: Path, body: str, reason: str) -> None:
        path = _write(tmp_path, f"[[recipe]]\n{body}\n")
        with pytest.raises(RecipeLoadError, match=reason) as exc_info:
            load_recipe_file(path)
        assert str(path) in str(exc_info.value)

    def test_invalid_repository_family(self, tmp_path: Path) -> None:
        text = """
[[recipe]]
name = "x"
provides = ["x"]

[[recipe.repository]]
name = "x-repo"
os_families = ["solaris"]
source = "deb https://example.com stable main"
source_path = "/etc/apt/sources.list.d/x.list"
"""
        with pytest.raises(RecipeLoadError, match="Unknown OS family"):
            load_recipe_file(_write(tmp_path, text))


class TestLoadRecipes:
    def test_directory_sorted(self, tmp_path: Path) -> None:
        _write(tmp_path, '[[recipe]]\nname = "b"\nprovides = ["b"]\n', "b.toml")
        _write(tmp_path, '[[recipe]]\nname = "a"\nprovides = ["a"]\n', "a.toml")
        _write(tmp_path, "ignored", "notes.txt")

        assert [p.name for p in iter_recipe_files([tmp_path])] == ["a.toml", "b.toml"]
        assert [r.name for r in load_recipes([tmp_path])] == ["a", "b"]

    def test_files_and_dirs_mixed(self, tmp_path: Path) -> None:
        recipes_dir = tmp_path / "more"
        recipes_dir.mkdir()
        _write(recipes_dir, '[[recipe]]\nname = "d"\nprovides = ["d"]\n', "d.toml")
        single = _write(tmp_path, '[[recipe]]\nname = "c"\nprovides = ["c"]\n', "c.toml")

        assert [r.name for r in load_recipes([single, recipes_dir])] == ["c", "d"]
