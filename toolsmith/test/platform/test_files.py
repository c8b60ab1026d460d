"""Tests for toolsmith.platform.files module."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from toolsmith.platform.files import (
    atomic_write_bytes,
    make_executable,
    replace_symlink,
    resolve_command,
)


class TestAtomicWrite:
    def test_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "etc" / "apt" / "sources.list.d" / "x.list"
        atomic_write_bytes(target, b"deb x\n")
        assert target.read_text(encoding="utf-8") == "deb x\n"

    def test_replaces_content_without_leftovers(self, tmp_path: Path) -> None:
        target = tmp_path / "key.gpg"
        atomic_write_bytes(target, b"old")
        atomic_write_bytes(target, b"new")
        assert target.read_bytes() == b"new"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["key.gpg"]

    def test_mode_is_world_readable(self, tmp_path: Path) -> None:
        target = tmp_path / "f"
        atomic_write_bytes(target, b"x")
        assert stat.S_IMODE(target.stat().st_mode) == 0o644


class TestMakeExecutable:
    def test_sets_exec_bits(self, tmp_path: Path) -> None:
        f = tmp_path / "tool"
        f.write_text("#!/bin/sh\n", encoding="utf-8")
        f.chmod(0o644)
        make_executable(f)
        assert os.access(f, os.X_OK)


class TestReplaceSymlink:
    def test_creates_link(self, tmp_path: Path) -> None:
        target = tmp_path / "opt" / "rg"
        target.parent.mkdir()
        target.write_text("", encoding="utf-8")
        link = tmp_path / "bin" / "rg"
        replace_symlink(link, target)
        assert link.is_symlink()
        assert link.resolve() == target.resolve()

    def test_replaces_existing_file_and_link(self, tmp_path: Path) -> None:
        old, new = tmp_path / "old", tmp_path / "new"
        old.write_text("", encoding="utf-8")
        new.write_text("", encoding="utf-8")
        link = tmp_path / "link"
        link.write_text("stale", encoding="utf-8")

        replace_symlink(link, old)
        replace_symlink(link, new)
        assert link.resolve() == new.resolve()

    def test_refuses_real_directory(self, tmp_path: Path) -> None:
        link = tmp_path / "dir"
        link.mkdir()
        with pytest.raises(IsADirectoryError):
            replace_symlink(link, tmp_path / "x")


class TestResolveCommand:
    def test_first_dirs_win(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        tool = bin_dir / "mytool"
        tool.write_text("#!/bin/sh\n", encoding="utf-8")
        tool.chmod(0o755)
        monkeypatch.setenv("PATH", "")
        assert resolve_command("mytool", (bin_dir,)) == tool

    def test_non_executable_is_ignored(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "mytool").write_text("", encoding="utf-8")
        monkeypatch.setenv("PATH", "")
        assert resolve_command("mytool", (tmp_path,)) is None

    def test_falls_back_to_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path_dir = tmp_path / "path"
        path_dir.mkdir()
        tool = path_dir / "othertool"
        tool.write_text("#!/bin/sh\n", encoding="utf-8")
        tool.chmod(0o755)
        monkeypatch.setenv("PATH", str(path_dir))
        assert resolve_command("othertool", (tmp_path / "empty",)) == tool
