"""Tests for sources/archive.py - release archive extraction."""

import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from toolsmith.core.result import Err, Ok
from toolsmith.sources.archive import ArchiveError, Extractor, _safe_relative_path


def _make_tar(path: Path, files: dict[str, bytes], mode: str = "w:gz") -> Path:
    with tarfile.open(path, mode) as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(content))
    return path


def _make_zip(path: Path, files: dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


class TestSafeRelativePath:
    @pytest.mark.parametrize("name", ["/etc/passwd", "../evil", "a/../../evil", "C:/x"])
    def test_unsafe(self, name: str) -> None:
        assert _safe_relative_path(name, 0) is None

    def test_strip(self) -> None:
        assert _safe_relative_path("fzf-0.66/bin/fzf", 1) == Path("bin/fzf")

    def test_stripped_to_nothing(self) -> None:
        assert _safe_relative_path("top", 1) is None


class TestExtractTar:
    """Tar extraction."""

    def test_flattens_single_top_dir(self, tmp_path: Path) -> None:
        archive = _make_tar(
            tmp_path / "rg.tar.gz",
            {"ripgrep-14.1.0/rg": b"#!bin", "ripgrep-14.1.0/doc/rg.1": b"man"},
        )
        install_dir = tmp_path / "opt" / "ripgrep"

        result = Extractor().extract(archive, install_dir, "tar.gz")

        assert isinstance(result, Ok)
        assert result.value.files_count == 2
        assert (install_dir / "rg").read_bytes() == b"#!bin"
        assert (install_dir / "doc" / "rg.1").exists()
        assert (install_dir / "rg").stat().st_mode & 0o111

    def test_no_flatten_for_flat_archive(self, tmp_path: Path) -> None:
        archive = _make_tar(tmp_path / "fzf.tar.gz", {"fzf": b"bin"})
        result = Extractor().extract(archive, tmp_path / "fzf", "tar.gz")
        assert isinstance(result, Ok)
        assert (tmp_path / "fzf" / "fzf").read_bytes() == b"bin"

    def test_xz(self, tmp_path: Path) -> None:
        archive = _make_tar(tmp_path / "t.tar.xz", {"a": b"1", "b": b"2"}, mode="w:xz")
        result = Extractor().extract(archive, tmp_path / "out", "tar.xz")
        assert isinstance(result, Ok)
        assert result.value.files_count == 2

    def test_traversal_members_skipped(self, tmp_path: Path) -> None:
        archive = _make_tar(tmp_path / "bad.tar.gz", {"../escape": b"x", "ok": b"y"})
        install_dir = tmp_path / "work" / "out"

        result = Extractor().extract(archive, install_dir, "tar.gz")

        assert isinstance(result, Ok)
        assert result.value.files_count == 1
        assert not (tmp_path / "work" / "escape").exists()
        assert not (tmp_path / "escape").exists()

    def test_replaces_previous_install(self, tmp_path: Path) -> None:
        install_dir = tmp_path / "out"
        install_dir.mkdir()
        (install_dir / "stale").write_text("old")
        archive = _make_tar(tmp_path / "t.tar.gz", {"fresh": b"new"})

        result = Extractor().extract(archive, install_dir, "tar.gz")

        assert isinstance(result, Ok)
        assert not (install_dir / "stale").exists()
        assert (install_dir / "fresh").exists()

    def test_corrupt_archive_keeps_previous_install(self, tmp_path: Path) -> None:
        install_dir = tmp_path / "out"
        install_dir.mkdir()
        (install_dir / "tool").write_text("working")
        archive = tmp_path / "broken.tar.gz"
        archive.write_bytes(b"not a tarball")

        result = Extractor().extract(archive, install_dir, "tar.gz")

        assert isinstance(result, Err)
        assert (install_dir / "tool").read_text() == "working"
        assert not (tmp_path / ".out.partial").exists()


class TestExtractZip:
    def test_flattens(self, tmp_path: Path) -> None:
        archive = _make_zip(tmp_path / "gh.zip", {"gh_2.60/bin/gh": b"gh"})
        result = Extractor().extract(archive, tmp_path / "gh", "zip")
        assert isinstance(result, Ok)
        assert (tmp_path / "gh" / "bin" / "gh").read_bytes() == b"gh"

    def test_bad_zip(self, tmp_path: Path) -> None:
        archive = tmp_path / "bad.zip"
        archive.write_bytes(b"nope")
        result = Extractor().extract(archive, tmp_path / "out", "zip")
        assert isinstance(result, Err)
        assert "Invalid zip file" in result.error.message


class TestExtractOther:
    def test_binary(self, tmp_path: Path) -> None:
        archive = tmp_path / "jq-linux-amd64"
        archive.write_bytes(b"\x7fELF")
        install_dir = tmp_path / "jq"

        result = Extractor().extract(archive, install_dir, "binary", binary_name="jq")

        assert isinstance(result, Ok)
        assert result.value.files_count == 1
        target = install_dir / "jq"
        assert target.read_bytes() == b"\x7fELF"
        assert target.stat().st_mode & 0o111

    def test_empty_archive_is_error(self, tmp_path: Path) -> None:
        archive = _make_tar(tmp_path / "empty.tar.gz", {})
        result = Extractor().extract(archive, tmp_path / "out", "tar.gz")
        assert isinstance(result, Err)
        assert result.error.message == "Archive contains no files"
        assert not (tmp_path / "out").exists()

    def test_missing_archive(self, tmp_path: Path) -> None:
        result = Extractor().extract(tmp_path / "nope.tar.gz", tmp_path / "out", "tar.gz")
        assert isinstance(result, Err)
        assert str(result.error) == "Archive not found: nope.tar.gz"

    def test_unsupported_kind(self, tmp_path: Path) -> None:
        archive = tmp_path / "x.7z"
        archive.write_bytes(b"x")
        result = Extractor().extract(archive, tmp_path / "out", "7z")
        assert result == Err(ArchiveError(archive=archive, message="Unsupported kind 7z"))
