"""User-level directory conventions.

All functions take the environment mapping explicitly so that config loading
stays a pure function of its inputs:

- binaries:  $XDG_BIN_HOME or ~/.local/bin
- releases:  ~/.local/opt/<recipe>
- cache:     $XDG_CACHE_HOME/toolsmith or ~/.cache/toolsmith
- config:    $XDG_CONFIG_HOME/toolsmith or ~/.config/toolsmith
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

__all__ = [
    "APP_NAME",
    "home",
    "user_bin_dir",
    "user_opt_dir",
    "user_cache_dir",
    "user_config_dir",
]

APP_NAME = "toolsmith"


def home(environ: Mapping[str, str]) -> Path:
    """Get the user's home directory, preferring $HOME for CI/containers."""
    home_env = environ.get("HOME")
    if home_env:
        return Path(home_env)
    return Path.home()


def _xdg(environ: Mapping[str, str], var: str, fallback: tuple[str, ...]) -> Path:
    value = environ.get(var)
    if value:
        return Path(value)
    return home(environ).joinpath(*fallback)


def user_bin_dir(environ: Mapping[str, str]) -> Path:
    return _xdg(environ, "XDG_BIN_HOME", (".local", "bin"))


def user_opt_dir(environ: Mapping[str, str]) -> Path:
    return home(environ) / ".local" / "opt"


def user_cache_dir(environ: Mapping[str, str]) -> Path:
    return _xdg(environ, "XDG_CACHE_HOME", (".cache",)) / APP_NAME


def user_config_dir(environ: Mapping[str, str]) -> Path:
    return _xdg(environ, "XDG_CONFIG_HOME", (".config",)) / APP_NAME
