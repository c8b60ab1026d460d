"""Typed environment configuration.

``EnvironmentConfig`` is the single value that carries endpoints, credentials
and filesystem locations into the engine. Nothing below the CLI reads
``os.environ`` directly; the config is built once and passed down.

Sources, lowest precedence first:
1. Built-in defaults (XDG-style user directories)
2. Environment variables (``TOOLSMITH_*``, ``GITHUB_TOKEN``)
3. A TOML file (``~/.config/toolsmith/config.toml`` or ``--config``)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from toolsmith.platform.paths import user_bin_dir, user_cache_dir, user_config_dir, user_opt_dir

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_float,
    get_int,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "ConfigError",
    "EnvironmentConfig",
    "default_config_path",
    "load_config",
    "DEFAULT_GITHUB_API_URL",
]

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_HTTP_RETRIES = 2
DEFAULT_RETRY_BACKOFF = 1.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.message} ({self.path})"
        return self.message


@dataclass(frozen=True, slots=True)
class EnvironmentConfig:
    """Explicit runtime configuration for one provisioning run.

    Attributes:
        github_api_url: Base URL of the release-metadata API
        github_token: Optional API token (sent as a bearer token, never logged)
        http_timeout: Per-request timeout in seconds
        http_retries: Extra attempts for transient network failures
        retry_backoff: Seconds to wait before retry N is ``backoff * N``
        opt_dir: Where release archives are extracted (one dir per recipe)
        bin_dir: Where provided commands are linked
        cache_dir: Download cache root
        recipe_paths: Extra TOML recipe files or directories
        use_sudo: Prefix privileged commands with sudo when not root
        run_timeout: Whole-run budget in seconds, checked between recipes
        fs_root: Root that absolute host paths (keyrings, sources) resolve under
    """

    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_token: str | None = field(default=None, repr=False)
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    http_retries: int = DEFAULT_HTTP_RETRIES
    retry_backoff: float = DEFAULT_RETRY_BACKOFF
    opt_dir: Path = field(default_factory=lambda: user_opt_dir(os.environ))
    bin_dir: Path = field(default_factory=lambda: user_bin_dir(os.environ))
    cache_dir: Path = field(default_factory=lambda: user_cache_dir(os.environ))
    recipe_paths: tuple[Path, ...] = ()
    use_sudo: bool = True
    run_timeout: float | None = None
    fs_root: Path = Path("/")

    @property
    def download_cache_dir(self) -> Path:
        return self.cache_dir / "downloads"

    def secrets(self) -> tuple[str, ...]:
        """Values that must never appear in reports or logs."""
        return (self.github_token,) if self.github_token else ()

    def host_path(self, path: str | Path) -> Path:
        """Resolve an absolute host path (e.g. /etc/apt/...) under ``fs_root``."""
        p = Path(path)
        if p.is_absolute():
            return self.fs_root.joinpath(*p.parts[1:])
        return self.fs_root / p

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EnvironmentConfig:
        """Build config from defaults overlaid with environment variables."""
        env = os.environ if environ is None else environ

        def _float(name: str, default: float | None) -> float | None:
            raw = env.get(name, "").strip()
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError:
                return default

        def _int(name: str, default: int) -> int:
            raw = env.get(name, "").strip()
            try:
                return int(raw) if raw else default
            except ValueError:
                return default

        def _path(name: str, default: Path) -> Path:
            raw = env.get(name, "").strip()
            return Path(raw).expanduser() if raw else default

        recipes_raw = env.get("TOOLSMITH_RECIPES", "")
        recipe_paths = tuple(
            Path(p).expanduser() for p in recipes_raw.split(os.pathsep) if p.strip()
        )

        return cls(
            github_api_url=(
                env.get("TOOLSMITH_GITHUB_API_URL") or DEFAULT_GITHUB_API_URL
            ).rstrip("/"),
            github_token=env.get("TOOLSMITH_GITHUB_TOKEN") or env.get("GITHUB_TOKEN") or None,
            http_timeout=_float("TOOLSMITH_HTTP_TIMEOUT", None) or DEFAULT_HTTP_TIMEOUT,
            http_retries=max(0, _int("TOOLSMITH_HTTP_RETRIES", DEFAULT_HTTP_RETRIES)),
            retry_backoff=DEFAULT_RETRY_BACKOFF,
            opt_dir=_path("TOOLSMITH_OPT_DIR", user_opt_dir(env)),
            bin_dir=_path("TOOLSMITH_BIN_DIR", user_bin_dir(env)),
            cache_dir=_path("TOOLSMITH_CACHE_DIR", user_cache_dir(env)),
            recipe_paths=recipe_paths,
            use_sudo=env.get("TOOLSMITH_NO_SUDO", "") not in ("1", "true", "yes"),
            run_timeout=_float("TOOLSMITH_RUN_TIMEOUT", None),
            fs_root=_path("TOOLSMITH_ROOT", Path("/")),
        )

    def merged_with(self, data: Mapping[str, object]) -> EnvironmentConfig:
        """Overlay a parsed TOML mapping on top of this config."""
        github: StrDict = get_table(data, "github") or {}
        network: StrDict = get_table(data, "network") or {}
        paths: StrDict = get_table(data, "paths") or {}
        install: StrDict = get_table(data, "install") or {}

        def _p(key: str, current: Path) -> Path:
            raw = get_str(paths, key)
            return Path(raw).expanduser() if raw else current

        retries = get_int(network, "retries")
        if retries is not None and retries < 0:
            raise ValueError("[network].retries must be >= 0")

        recipes = get_str_list(paths, "recipes")
        run_timeout = get_float(install, "run_timeout")
        use_sudo = get_bool(install, "use_sudo")

        return replace(
            self,
            github_api_url=(get_str(github, "api_url") or self.github_api_url).rstrip("/"),
            github_token=get_str(github, "token") or self.github_token,
            http_timeout=get_float(network, "timeout") or self.http_timeout,
            http_retries=self.http_retries if retries is None else retries,
            retry_backoff=get_float(network, "backoff") or self.retry_backoff,
            opt_dir=_p("opt", self.opt_dir),
            bin_dir=_p("bin", self.bin_dir),
            cache_dir=_p("cache", self.cache_dir),
            recipe_paths=self.recipe_paths
            + tuple(Path(p).expanduser() for p in (recipes or [])),
            use_sudo=self.use_sudo if use_sudo is None else use_sudo,
            run_timeout=self.run_timeout if run_timeout is None else run_timeout,
            fs_root=_p("root", self.fs_root),
        )


def default_config_path(environ: Mapping[str, str] | None = None) -> Path:
    return user_config_dir(os.environ if environ is None else environ) / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError("Config file not found", path=path))
    except PermissionError:
        return Err(ConfigError("Permission denied reading config", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Result[EnvironmentConfig, ConfigError]:
    """Load configuration from the environment and an optional TOML file.

    A missing file at the default location is not an error; a missing file
    that was asked for explicitly is.

    Args:
        path: Explicit config path, or None for the default location
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Ok(EnvironmentConfig) on success, Err(ConfigError) on failure
    """
    base = EnvironmentConfig.from_env(environ)
    explicit = path is not None
    config_path = path if path is not None else default_config_path(environ)

    if not explicit and not config_path.exists():
        return Ok(base)

    parsed = _parse_toml(config_path)
    if isinstance(parsed, Err):
        return parsed

    try:
        return Ok(base.merged_with(parsed.value))
    except (TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=config_path))
