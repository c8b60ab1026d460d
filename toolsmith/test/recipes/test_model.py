"""Tests for recipes/model.py - recipe validation."""

import pytest

from toolsmith.core.config import EnvironmentConfig
from toolsmith.core.errors import InstallCommandError, InvalidRecipeError
from toolsmith.core.result import Err, Ok, Result
from toolsmith.platform.detection import Architecture, OSFamily, PlatformInfo
from toolsmith.platform.process import ProcessError
from toolsmith.recipes.model import (
    CommandOverride,
    InstallContext,
    Recipe,
    ReleaseSource,
    RepositoryDescriptor,
)


def _repo(name: str, *families: OSFamily) -> RepositoryDescriptor:
    return RepositoryDescriptor(
        name=name,
        source_line_template="deb https://example.com/apt stable main",
        source_path=f"/etc/apt/sources.list.d/{name}.list",
        applicable_os_families=frozenset(families),
    )


class TestRecipe:
    """Construction-time validation."""

    def test_normalises_inputs(self) -> None:
        recipe = Recipe(
            name="ripgrep",
            provides="rg",  # type: ignore[arg-type]
            depends=["curl"],  # type: ignore[arg-type]
            package_names={"apt": "ripgrep"},  # type: ignore[dict-item]
        )
        assert recipe.provides == ("rg",)
        assert recipe.depends == frozenset({"curl"})
        assert recipe.packages_for("apt") == ("ripgrep",)
        assert recipe.packages_for("brew") is None
        assert recipe.primary_command == "rg"
        assert str(recipe) == "ripgrep"

    def test_duplicate_commands_removed(self) -> None:
        recipe = Recipe(name="rust", provides=("cargo", "rustc", "cargo"))
        assert recipe.provides == ("cargo", "rustc")

    @pytest.mark.parametrize(
        ("kwargs", "reason"),
        [
            ({"name": "Bad Name", "provides": ("x",)}, "name must be"),
            ({"name": "x", "provides": ()}, "at least one command"),
            ({"name": "x", "provides": ("a b",)}, "invalid command name"),
            ({"name": "x", "provides": ("x",), "depends": {"x"}}, "depends on itself"),
            ({"name": "x", "provides": ("x",), "package_names": {"zypper": ("x",)}}, "unknown"),
            ({"name": "x", "provides": ("x",), "package_names": {"apt": ()}}, "empty package"),
            ({"name": "x", "provides": ("x",), "version_args": ()}, "version_args"),
            ({"name": "x", "provides": ("x",), "hooks": {"post_install": ("no",)}}, "hooks"),
        ],
    )
    def test_rejects(self, kwargs: dict, reason: str) -> None:
        with pytest.raises(InvalidRecipeError, match=reason):
            Recipe(**kwargs)

    def test_one_repository_per_family(self) -> None:
        with pytest.raises(InvalidRecipeError, match="more than one repository for debian"):
            Recipe(
                name="x",
                provides=("x",),
                repo_requirements=(_repo("a", OSFamily.DEBIAN), _repo("b", OSFamily.DEBIAN)),
            )

    def test_repo_requirement_for(self) -> None:
        apt = _repo("x-apt", OSFamily.DEBIAN)
        recipe = Recipe(name="x", provides=("x",), repo_requirements=(apt,))
        assert recipe.repo_requirement_for(OSFamily.DEBIAN) == apt
        assert recipe.repo_requirement_for(OSFamily.ARCH) is None

    def test_hooks_for(self) -> None:
        def hook(ctx: object) -> None:
            pass

        recipe = Recipe(name="x", provides=("x",), hooks={"post_install": (hook,)})
        assert recipe.hooks_for("post_install") == (hook,)
        assert recipe.hooks_for("pre_install") == ()

    def test_equal_declarations_compare_equal(self) -> None:
        a = Recipe(name="x", provides=("x",), install_override=CommandOverride(("make",)))
        b = Recipe(name="x", provides=("x",), install_override=CommandOverride(("make",)))
        assert a == b


class TestReleaseSource:
    def test_parse(self) -> None:
        assert ReleaseSource.parse("jqlang/jq@jq-1.7.1") == ReleaseSource("jqlang/jq", "jq-1.7.1")
        assert ReleaseSource.parse("junegunn/fzf").ref == "junegunn/fzf"
        assert ReleaseSource("jqlang/jq", "jq-1.7.1").ref == "jqlang/jq@jq-1.7.1"

    @pytest.mark.parametrize("repo", ["fzf", "a/b/c", "../x"])
    def test_invalid_repo(self, repo: str) -> None:
        with pytest.raises(InvalidRecipeError):
            ReleaseSource(repo)

    def test_invalid_tag(self) -> None:
        with pytest.raises(InvalidRecipeError, match="invalid release tag"):
            ReleaseSource("o/r", "a/b")


class TestRepositoryDescriptor:
    @pytest.mark.parametrize(
        ("kwargs", "reason"),
        [
            ({"source_path": "relative.list"}, "source_path must be absolute"),
            ({"applicable_os_families": frozenset()}, "no applicable OS families"),
            ({"key_url": "https://k"}, "go together"),
            ({"key_url": "https://k", "keyring_path": "k.gpg"}, "keyring_path must be absolute"),
            ({"manager": "zypper"}, "unknown manager"),
            ({"source_line_template": "  "}, "empty source entry"),
        ],
    )
    def test_rejects(self, kwargs: dict, reason: str) -> None:
        values = {
            "name": "example",
            "source_line_template": "deb https://example.com stable main",
            "source_path": "/etc/apt/sources.list.d/example.list",
            "applicable_os_families": frozenset({OSFamily.DEBIAN}),
        }
        values.update(kwargs)
        with pytest.raises(InvalidRecipeError, match=reason):
            RepositoryDescriptor(**values)

    def test_applies_to(self) -> None:
        repo = _repo("x", OSFamily.DEBIAN, OSFamily.FEDORA)
        assert repo.applies_to(OSFamily.FEDORA)
        assert not repo.applies_to(OSFamily.MACOS)


class RecordingRunner:
    def __init__(self, result: Result[str, ProcessError]) -> None:
        self.result = result
        self.calls: list[tuple[list[str], str | None]] = []

    def run(
        self, args: list[str], *, input: str | None = None, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        self.calls.append((list(args), input))
        return self.result


def _context(runner: RecordingRunner, *, use_sudo: bool) -> InstallContext:
    return InstallContext(
        recipe=Recipe(name="x", provides=("x",)),
        platform=PlatformInfo(os_family=OSFamily.DEBIAN, architecture=Architecture.AMD64),
        config=EnvironmentConfig(),
        runner=runner,
        use_sudo=use_sudo,
    )


class TestInstallContext:
    def test_run_returns_stdout(self) -> None:
        runner = RecordingRunner(Ok("done"))
        assert _context(runner, use_sudo=True).run(["make"], input="y") == "done"
        assert runner.calls == [(["make"], "y")]

    def test_privileged_uses_sudo(self) -> None:
        runner = RecordingRunner(Ok(""))
        _context(runner, use_sudo=True).run(["make", "install"], privileged=True)
        _context(runner, use_sudo=False).run(["make", "install"], privileged=True)
        assert [c[0] for c in runner.calls] == [
            ["sudo", "make", "install"],
            ["make", "install"],
        ]

    def test_failure_raises(self) -> None:
        runner = RecordingRunner(Err(ProcessError(("make",), 2, "", "make: *** No rule")))
        with pytest.raises(InstallCommandError, match="No rule"):
            _context(runner, use_sudo=False).run(["make"])

    def test_command_override(self) -> None:
        runner = RecordingRunner(Ok(""))
        CommandOverride(("apt-get", "install", "x"), privileged=True)(
            _context(runner, use_sudo=True)
        )
        assert runner.calls[0][0] == ["sudo", "apt-get", "install", "x"]
