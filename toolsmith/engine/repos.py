"""Idempotent registration of package repositories.

``ensure_repository`` reads before it writes: when the keyring exists and the
source entry already holds exactly the rendered text, nothing is fetched and
nothing is written. Otherwise the key is fetched and stored, then the entry is
written, and the owning manager is flagged for an index refresh.

Host files are reached through ``HostFiles`` so that tests (and ``fs_root``)
can redirect every write away from the real ``/etc``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from toolsmith.core.errors import KeyFetchError, RepositoryWriteError
from toolsmith.core.result import Err
from toolsmith.platform.detection import Architecture, OSFamily, PlatformInfo
from toolsmith.platform.files import atomic_write_bytes

if TYPE_CHECKING:
    from toolsmith.core.config import EnvironmentConfig
    from toolsmith.platform.process import CommandRunner
    from toolsmith.recipes.model import RepositoryDescriptor
    from toolsmith.sources.http import HttpClient

__all__ = [
    "RepoStatus",
    "HostFiles",
    "LocalHostFiles",
    "RepositoryProvisioner",
    "render_source_entry",
    "substitute_tokens",
]

logger = logging.getLogger(__name__)


class RepoStatus(Enum):
    ALREADY_PRESENT = auto()
    NEWLY_REGISTERED = auto()

    def __str__(self) -> str:
        return self.name.lower()


class HostFiles(Protocol):
    """Read and write trusted host configuration files."""

    def read_bytes(self, path: str) -> bytes | None:
        """Return file content, or None if the file does not exist."""
        ...

    def write_bytes(self, path: str, content: bytes) -> None:
        """Create or replace a file.

        Raises:
            OSError: The file could not be written.
        """
        ...


class LocalHostFiles:
    """HostFiles backed by the local filesystem under ``config.fs_root``.

    Writes go straight to disk when the target is writable. Otherwise, when
    sudo is allowed, the content is staged in the cache directory and moved
    into place with ``sudo install``.
    """

    def __init__(
        self,
        config: EnvironmentConfig,
        runner: CommandRunner,
        *,
        use_sudo: bool,
    ) -> None:
        self._config = config
        self._runner = runner
        self._use_sudo = use_sudo

    def read_bytes(self, path: str) -> bytes | None:
        try:
            return self._config.host_path(path).read_bytes()
        except FileNotFoundError:
            return None

    def write_bytes(self, path: str, content: bytes) -> None:
        target = self._config.host_path(path)
        try:
            atomic_write_bytes(target, content)
            return
        except PermissionError:
            if not self._use_sudo:
                raise

        self._config.cache_dir.mkdir(parents=True, exist_ok=True)
        fd, staged = tempfile.mkstemp(prefix=".repo-", dir=str(self._config.cache_dir))
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            for argv in (
                ["sudo", "mkdir", "-p", str(target.parent)],
                ["sudo", "install", "-m", "0644", staged, str(target)],
            ):
                result = self._runner.run(argv)
                if isinstance(result, Err):
                    raise PermissionError(f"{result.error}: {result.error.detail}")
        finally:
            Path(staged).unlink(missing_ok=True)


def _arch_token(platform: PlatformInfo) -> str:
    debian_style = platform.os_family == OSFamily.DEBIAN
    match platform.architecture:
        case Architecture.AMD64:
            return "amd64" if debian_style else "x86_64"
        case Architecture.ARM64:
            return "arm64" if debian_style else "aarch64"
        case _:
            return platform.machine or "amd64"


def _inject_signed_by(line: str, keyring: str) -> str:
    stripped = line.lstrip()
    if not stripped.startswith(("deb ", "deb-src ")) or "signed-by=" in stripped:
        return line
    kind, _, rest = stripped.partition(" ")
    rest = rest.lstrip()
    if rest.startswith("["):
        return f"{kind} [signed-by={keyring} {rest[1:]}"
    return f"{kind} [signed-by={keyring}] {rest}"


def substitute_tokens(
    text: str, descriptor: RepositoryDescriptor, platform: PlatformInfo
) -> str:
    """Replace %ARCH%, %CODENAME%, %DISTRO% and %KEYRING% in ``text``."""
    return (
        text.replace("%ARCH%", _arch_token(platform))
        .replace("%CODENAME%", platform.codename or "stable")
        .replace("%DISTRO%", platform.distro_id or str(platform.os_family))
        .replace("%KEYRING%", descriptor.keyring_path or "")
    )


def render_source_entry(descriptor: RepositoryDescriptor, platform: PlatformInfo) -> str:
    """Substitute tokens into the descriptor's source entry.

    Apt lines that reference a keyring but carry no ``signed-by=`` option get
    one injected after ``deb``. The result always ends with a newline.
    """
    text = substitute_tokens(descriptor.source_line_template, descriptor, platform)
    lines = [line.strip() for line in text.strip().splitlines()]
    if descriptor.keyring_path:
        lines = [_inject_signed_by(line, descriptor.keyring_path) for line in lines]
    return "\n".join(lines) + "\n"


class RepositoryProvisioner:
    """Registers package sources; one instance per run.

    Usage:
        provisioner = RepositoryProvisioner(http, files)
        status = provisioner.ensure_repository(docker_apt, platform)
        if provisioner.needs_refresh("apt"):
            ...
    """

    def __init__(self, http: HttpClient, files: HostFiles) -> None:
        self._http = http
        self._files = files
        self._needs_refresh: set[str] = set()

    def needs_refresh(self, manager_id: str) -> bool:
        return manager_id in self._needs_refresh

    def mark_refreshed(self, manager_id: str) -> None:
        self._needs_refresh.discard(manager_id)

    def is_present(self, descriptor: RepositoryDescriptor, platform: PlatformInfo) -> bool:
        """Keyring exists and the source entry holds exactly the rendered text."""
        if descriptor.keyring_path is not None:
            key = self._read(descriptor, descriptor.keyring_path)
            if not key:
                return False
        entry = render_source_entry(descriptor, platform).encode()
        return self._read(descriptor, descriptor.source_path) == entry

    def ensure_repository(
        self, descriptor: RepositoryDescriptor, platform: PlatformInfo
    ) -> RepoStatus:
        """Register ``descriptor`` unless it is already present.

        Raises:
            KeyFetchError: Key material could not be downloaded.
            RepositoryWriteError: Keyring or source entry could not be read or written.
        """
        if not descriptor.applies_to(platform.os_family):
            raise ValueError(f"{descriptor.name} does not apply to {platform.os_family}")

        if self.is_present(descriptor, platform):
            logger.debug("Repository %s already present", descriptor.name)
            return RepoStatus.ALREADY_PRESENT

        if descriptor.key_url is not None and descriptor.keyring_path is not None:
            if not self._read(descriptor, descriptor.keyring_path):
                url = substitute_tokens(descriptor.key_url, descriptor, platform)
                self._store_key(descriptor, url, descriptor.keyring_path)

        entry = render_source_entry(descriptor, platform)
        if self._read(descriptor, descriptor.source_path) != entry.encode():
            self._write(descriptor, descriptor.source_path, entry.encode())

        if descriptor.manager is not None:
            self._needs_refresh.add(descriptor.manager)
        logger.info("Registered repository %s", descriptor.name)
        return RepoStatus.NEWLY_REGISTERED

    def _store_key(self, descriptor: RepositoryDescriptor, url: str, keyring: str) -> None:
        result = self._http.get_bytes(url)
        if isinstance(result, Err):
            raise KeyFetchError(descriptor.name, str(result.error))
        if not result.value.strip():
            raise KeyFetchError(descriptor.name, f"empty key material from {url}")
        self._write(descriptor, keyring, result.value)

    def _read(self, descriptor: RepositoryDescriptor, path: str) -> bytes | None:
        try:
            return self._files.read_bytes(path)
        except OSError as e:
            raise RepositoryWriteError(descriptor.name, f"cannot read {path}: {e}") from e

    def _write(self, descriptor: RepositoryDescriptor, path: str, content: bytes) -> None:
        try:
            self._files.write_bytes(path, content)
        except OSError as e:
            raise RepositoryWriteError(descriptor.name, f"cannot write {path}: {e}") from e
