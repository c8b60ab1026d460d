"""Tests for toolsmith.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from toolsmith.core.config import (
    DEFAULT_GITHUB_API_URL,
    ConfigError,
    EnvironmentConfig,
    default_config_path,
    load_config,
)
from toolsmith.core.result import Err, Ok


def _env(tmp_path: Path, **extra: str) -> dict[str, str]:
    return {"HOME": str(tmp_path), **extra}


class TestEnvironmentConfig:
    """Defaults and derived paths."""

    def test_defaults_follow_home(self, tmp_path: Path) -> None:
        config = EnvironmentConfig.from_env(_env(tmp_path))
        assert config.github_api_url == DEFAULT_GITHUB_API_URL
        assert config.github_token is None
        assert config.bin_dir == tmp_path / ".local" / "bin"
        assert config.opt_dir == tmp_path / ".local" / "opt"
        assert config.cache_dir == tmp_path / ".cache" / "toolsmith"
        assert config.download_cache_dir == tmp_path / ".cache" / "toolsmith" / "downloads"
        assert config.use_sudo is True
        assert config.run_timeout is None

    def test_frozen(self) -> None:
        config = EnvironmentConfig()
        with pytest.raises(AttributeError):
            config.use_sudo = False  # type: ignore[misc]

    def test_token_not_in_repr(self) -> None:
        config = EnvironmentConfig(github_token="ghp_secret")
        assert "ghp_secret" not in repr(config)
        assert config.secrets() == ("ghp_secret",)

    def test_no_secrets_without_token(self) -> None:
        assert EnvironmentConfig().secrets() == ()

    def test_host_path_under_fs_root(self, tmp_path: Path) -> None:
        config = EnvironmentConfig(fs_root=tmp_path)
        assert config.host_path("/etc/apt/keyrings/x.gpg") == tmp_path / "etc/apt/keyrings/x.gpg"

    def test_host_path_default_root(self) -> None:
        assert EnvironmentConfig().host_path("/etc/hosts") == Path("/etc/hosts")


class TestFromEnv:
    """Environment variables overlay the defaults."""

    def test_overrides(self, tmp_path: Path) -> None:
        env = _env(
            tmp_path,
            TOOLSMITH_GITHUB_API_URL="https://ghe.example.com/api/v3/",
            GITHUB_TOKEN="tok",
            TOOLSMITH_HTTP_RETRIES="5",
            TOOLSMITH_BIN_DIR=str(tmp_path / "bin"),
            TOOLSMITH_NO_SUDO="1",
            TOOLSMITH_RUN_TIMEOUT="90",
            TOOLSMITH_ROOT=str(tmp_path / "root"),
        )
        config = EnvironmentConfig.from_env(env)
        assert config.github_api_url == "https://ghe.example.com/api/v3"
        assert config.github_token == "tok"
        assert config.http_retries == 5
        assert config.bin_dir == tmp_path / "bin"
        assert config.use_sudo is False
        assert config.run_timeout == 90.0
        assert config.fs_root == tmp_path / "root"

    def test_toolsmith_token_wins(self, tmp_path: Path) -> None:
        env = _env(tmp_path, GITHUB_TOKEN="a", TOOLSMITH_GITHUB_TOKEN="b")
        assert EnvironmentConfig.from_env(env).github_token == "b"

    def test_invalid_numbers_fall_back(self, tmp_path: Path) -> None:
        env = _env(tmp_path, TOOLSMITH_HTTP_RETRIES="many", TOOLSMITH_HTTP_TIMEOUT="soon")
        config = EnvironmentConfig.from_env(env)
        assert config.http_retries == 2
        assert config.http_timeout == 30.0

    def test_recipe_paths_split_on_pathsep(self, tmp_path: Path) -> None:
        import os

        env = _env(tmp_path, TOOLSMITH_RECIPES=os.pathsep.join(["/a.toml", "/b"]))
        assert EnvironmentConfig.from_env(env).recipe_paths == (Path("/a.toml"), Path("/b"))


class TestLoadConfig:
    """TOML config loading."""

    def test_missing_default_file_is_ok(self, tmp_path: Path) -> None:
        env = _env(tmp_path, XDG_CONFIG_HOME=str(tmp_path / "cfg"))
        result = load_config(None, env)
        assert isinstance(result, Ok)
        assert default_config_path(env) == tmp_path / "cfg" / "toolsmith" / "config.toml"

    def test_missing_explicit_file_is_error(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml", _env(tmp_path))
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "not found" in str(result.error)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[github\n", encoding="utf-8")
        result = load_config(path, _env(tmp_path))
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_tables_overlay_environment(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            """
[github]
api_url = "https://api.example.com/"
token = "from-file"

[network]
timeout = 5
retries = 0
backoff = 0.5

[paths]
bin = "/opt/tools/bin"
recipes = ["/etc/toolsmith/recipes"]

[install]
use_sudo = false
run_timeout = 600
""",
            encoding="utf-8",
        )
        result = load_config(path, _env(tmp_path, GITHUB_TOKEN="from-env"))
        assert isinstance(result, Ok)
        config = result.value
        assert config.github_api_url == "https://api.example.com"
        assert config.github_token == "from-file"
        assert config.http_timeout == 5.0
        assert config.http_retries == 0
        assert config.retry_backoff == 0.5
        assert config.bin_dir == Path("/opt/tools/bin")
        assert config.recipe_paths == (Path("/etc/toolsmith/recipes"),)
        assert config.use_sudo is False
        assert config.run_timeout == 600.0

    def test_negative_retries_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("[network]\nretries = -1\n", encoding="utf-8")
        result = load_config(path, _env(tmp_path))
        assert isinstance(result, Err)
        assert "retries" in result.error.message
