"""Filesystem helpers."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from collections.abc import Sequence
from pathlib import Path

__all__ = [
    "atomic_write_bytes",
    "make_executable",
    "replace_symlink",
    "resolve_command",
]


def atomic_write_bytes(path: Path, content: bytes) -> None:
    """Write bytes to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def replace_symlink(link: Path, target: Path) -> None:
    """Point ``link`` at ``target``, replacing any existing file or link."""
    link.parent.mkdir(parents=True, exist_ok=True)
    if link.is_symlink() or link.exists():
        if link.is_dir() and not link.is_symlink():
            raise IsADirectoryError(str(link))
        link.unlink()
    link.symlink_to(target)


def resolve_command(command: str, first_dirs: Sequence[Path] = ()) -> Path | None:
    """Resolve a command in ``first_dirs``, then on PATH."""
    for directory in first_dirs:
        candidate = directory / command
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return candidate
    found = shutil.which(command)
    return Path(found) if found else None
