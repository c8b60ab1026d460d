"""Release archive extraction.

``Extractor`` unpacks tar (gz/xz/bz2) and zip archives, or places a bare
binary, into an install directory:
- member paths are sanitised; absolute paths, ``..`` and links are skipped
- a single top-level directory is flattened away
- extraction happens in a staging directory that replaces the target only
  on success, so a failed upgrade leaves the previous install intact
"""

from __future__ import annotations

import contextlib
import os
import shutil
import stat
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from toolsmith.core.result import Err, Ok, Result

__all__ = ["Extractor", "ExtractResult", "ArchiveError", "TAR_MODES"]

TAR_MODES: dict[str, str] = {"tar.gz": "r:gz", "tar.xz": "r:xz", "tar.bz2": "r:bz2"}


@dataclass(frozen=True, slots=True)
class ArchiveError:
    """Extraction error details.

    Attributes:
        archive: Path to the archive that failed
        message: Human-readable error message
    """

    archive: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.archive.name}"


@dataclass(frozen=True, slots=True)
class ExtractResult:
    install_dir: Path
    files_count: int


def _safe_relative_path(member_name: str, strip_components: int) -> Path | None:
    """Return a sanitized relative extraction path, or None if unsafe."""
    normalized = member_name.replace("\\", "/")
    if normalized.startswith("/"):
        return None

    parts = [p for p in PurePosixPath(normalized).parts if p != "."]
    if len(parts) <= strip_components:
        return None

    kept = parts[strip_components:]
    if any(part in {"", ".."} for part in kept):
        return None
    if kept[0].endswith(":"):
        return None

    return Path(*kept)


def _is_within_root(root: Path, target: Path) -> bool:
    try:
        return target.resolve().is_relative_to(root.resolve())
    except OSError:
        return False


def _common_top_dir(names: list[str]) -> bool:
    """True when every member lives under one shared top-level directory."""
    tops: set[str] = set()
    nested = False
    for name in names:
        parts = [p for p in PurePosixPath(name.replace("\\", "/")).parts if p not in ("", ".")]
        if not parts:
            continue
        tops.add(parts[0])
        if len(parts) > 1:
            nested = True
    return len(tops) == 1 and nested


class Extractor:
    """Archive extractor for release installs.

    Usage:
        result = Extractor().extract(archive, opt_dir / "fzf", "tar.gz")
        if is_ok(result):
            print(f"Extracted {result.value.files_count} files")
    """

    def extract(
        self,
        archive: Path,
        install_dir: Path,
        kind: str,
        *,
        binary_name: str | None = None,
    ) -> Result[ExtractResult, ArchiveError]:
        """Extract ``archive`` of ``kind`` into ``install_dir``.

        Args:
            archive: Downloaded file
            install_dir: Target directory (replaced on success)
            kind: One of ``tar.gz``, ``tar.xz``, ``tar.bz2``, ``zip``, ``binary``
            binary_name: File name for a bare binary (defaults to the archive name)
        """
        if not archive.exists():
            return Err(ArchiveError(archive=archive, message="Archive not found"))

        staging = install_dir.with_name(f".{install_dir.name}.partial")
        try:
            if staging.exists():
                shutil.rmtree(staging)
            staging.mkdir(parents=True)

            match kind:
                case "tar.gz" | "tar.xz" | "tar.bz2":
                    count = self._extract_tar(archive, staging, TAR_MODES[kind])
                case "zip":
                    count = self._extract_zip(archive, staging)
                case "binary":
                    target = staging / (binary_name or archive.name)
                    shutil.copyfile(archive, target)
                    target.chmod(0o755)
                    count = 1
                case _:
                    shutil.rmtree(staging, ignore_errors=True)
                    return Err(ArchiveError(archive=archive, message=f"Unsupported kind {kind}"))

            if count == 0:
                shutil.rmtree(staging, ignore_errors=True)
                return Err(ArchiveError(archive=archive, message="Archive contains no files"))

            if install_dir.exists() or install_dir.is_symlink():
                if install_dir.is_dir() and not install_dir.is_symlink():
                    shutil.rmtree(install_dir)
                else:
                    install_dir.unlink()
            os.replace(staging, install_dir)
            return Ok(ExtractResult(install_dir=install_dir, files_count=count))

        except tarfile.TarError as e:
            shutil.rmtree(staging, ignore_errors=True)
            return Err(ArchiveError(archive=archive, message=f"Tar extraction failed: {e}"))
        except zipfile.BadZipFile as e:
            shutil.rmtree(staging, ignore_errors=True)
            return Err(ArchiveError(archive=archive, message=f"Invalid zip file: {e}"))
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            return Err(ArchiveError(archive=archive, message=f"IO error: {e}"))

    def _extract_tar(self, archive: Path, dest: Path, mode: str) -> int:
        root = dest.resolve()
        files_count = 0
        with tarfile.open(archive, mode) as tar:
            members = tar.getmembers()
            strip = 1 if _common_top_dir([m.name for m in members]) else 0
            for member in members:
                # Directories are implied; links, devices and fifos are skipped.
                if not member.isreg():
                    continue

                rel_path = _safe_relative_path(member.name, strip)
                if rel_path is None:
                    continue

                full_path = dest / rel_path
                if not _is_within_root(root, full_path):
                    continue

                src = tar.extractfile(member)
                if src is None:
                    continue

                full_path.parent.mkdir(parents=True, exist_ok=True)
                with src, open(full_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                file_mode = member.mode & 0o777
                if file_mode:
                    with contextlib.suppress(OSError):
                        os.chmod(full_path, file_mode)

                files_count += 1
        return files_count

    def _extract_zip(self, archive: Path, dest: Path) -> int:
        root = dest.resolve()
        files_count = 0
        with zipfile.ZipFile(archive, "r") as zf:
            infos = zf.infolist()
            strip = 1 if _common_top_dir([i.filename for i in infos]) else 0
            for info in infos:
                if info.is_dir():
                    continue

                unix_attrs = info.external_attr >> 16
                if (unix_attrs & 0o170000) == stat.S_IFLNK:
                    continue

                rel_path = _safe_relative_path(info.filename, strip)
                if rel_path is None:
                    continue

                full_path = dest / rel_path
                if not _is_within_root(root, full_path):
                    continue

                full_path.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(full_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                if unix_attrs & 0o777:
                    full_path.chmod(unix_attrs & 0o777)

                files_count += 1
        return files_count
