"""Rust toolchain via rustup.

rustup installs into ``~/.cargo/bin`` and manages toolchains itself, so no
package manager is used. After the installer script runs, the provided
commands are linked into ``bin_dir`` where the rest of the engine looks first.

Install: https://rustup.rs/
"""

from __future__ import annotations

import logging
from pathlib import Path

from toolsmith.core.errors import InstallCommandError
from toolsmith.platform.files import replace_symlink
from toolsmith.recipes.model import InstallContext, Recipe

__all__ = ["RUST", "install_rustup", "cargo_bin_dir"]

logger = logging.getLogger(__name__)

RUSTUP_INIT_URL = "https://sh.rustup.rs"


def cargo_bin_dir() -> Path:
    return Path.home() / ".cargo" / "bin"


def install_rustup(ctx: InstallContext) -> None:
    """Fetch and run rustup-init, then link cargo/rustc/rustup into bin_dir."""
    script = ctx.run(["curl", "--proto", "=https", "--tlsv1.2", "-sSf", RUSTUP_INIT_URL])
    ctx.run(
        ["sh", "-s", "--", "-y", "--no-modify-path", "--default-toolchain", "stable"],
        input=script,
    )

    source_dir = cargo_bin_dir()
    for command in ctx.recipe.provides:
        target = source_dir / command
        if not target.exists():
            raise InstallCommandError(ctx.recipe.name, f"rustup did not create {target}")
        try:
            replace_symlink(ctx.config.bin_dir / command, target)
        except OSError as e:
            raise InstallCommandError(ctx.recipe.name, f"cannot link {command}: {e}") from e
        logger.debug("Linked %s -> %s", ctx.config.bin_dir / command, target)


RUST = Recipe(
    name="rust",
    provides=("cargo", "rustc", "rustup"),
    depends={"curl"},
    install_override=install_rustup,
    description="Rust compiler and cargo via rustup",
)
