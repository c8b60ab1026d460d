"""Tests for toolsmith.platform.detection module."""

from __future__ import annotations

from pathlib import Path

import pytest

from toolsmith.platform.detection import (
    Architecture,
    OSFamily,
    PlatformInfo,
    classify_architecture,
    classify_os_family,
    detect,
    detect_available_managers,
    detect_platform,
    parse_os_release,
)

UBUNTU_OS_RELEASE = """\
PRETTY_NAME="Ubuntu 24.04.1 LTS"
NAME="Ubuntu"
VERSION_ID="24.04"
VERSION_CODENAME=noble
ID=ubuntu
ID_LIKE=debian
UBUNTU_CODENAME=noble
"""


def _which(*present: str):
    def which(name: str) -> str | None:
        return f"/usr/bin/{name}" if name in present else None

    return which


class TestParseOsRelease:
    """os-release parsing."""

    def test_quoted_and_bare_values(self) -> None:
        values = parse_os_release(UBUNTU_OS_RELEASE)
        assert values["ID"] == "ubuntu"
        assert values["NAME"] == "Ubuntu"
        assert values["PRETTY_NAME"] == "Ubuntu 24.04.1 LTS"
        assert values["VERSION_CODENAME"] == "noble"

    def test_skips_comments_and_garbage(self) -> None:
        values = parse_os_release('# comment\n\nnot a pair\nID="fedora"\nBROKEN="x\n')
        assert values == {"ID": "fedora"}


class TestClassifyOsFamily:
    """Pure OS family classification."""

    @pytest.mark.parametrize(
        ("os_release", "expected"),
        [
            ({"ID": "ubuntu", "ID_LIKE": "debian"}, OSFamily.DEBIAN),
            ({"ID": "debian"}, OSFamily.DEBIAN),
            ({"ID": "linuxmint", "ID_LIKE": "ubuntu debian"}, OSFamily.DEBIAN),
            ({"ID": "fedora"}, OSFamily.FEDORA),
            ({"ID": "rocky", "ID_LIKE": "rhel centos fedora"}, OSFamily.FEDORA),
            ({"ID": "arch"}, OSFamily.ARCH),
            ({"ID": "manjaro", "ID_LIKE": "arch"}, OSFamily.ARCH),
            ({"ID": "alpine"}, OSFamily.GENERIC),
            ({"ID": "someos", "ID_LIKE": "ubuntu"}, OSFamily.DEBIAN),
        ],
    )
    def test_linux(self, os_release: dict[str, str], expected: OSFamily) -> None:
        assert classify_os_family("linux", os_release) == expected

    def test_own_id_beats_id_like(self) -> None:
        assert classify_os_family("linux", {"ID": "fedora", "ID_LIKE": "debian"}) == (
            OSFamily.FEDORA
        )

    def test_darwin(self) -> None:
        assert classify_os_family("darwin", None) == OSFamily.MACOS

    def test_linux_without_os_release_is_generic(self) -> None:
        assert classify_os_family("linux", None) == OSFamily.GENERIC

    def test_bsd_is_generic(self) -> None:
        assert classify_os_family("freebsd14", None) == OSFamily.GENERIC

    @pytest.mark.parametrize("sys_platform", ["win32", "cygwin", "emscripten", ""])
    def test_non_posix_is_unknown(self, sys_platform: str) -> None:
        assert classify_os_family(sys_platform, None) == OSFamily.UNKNOWN


class TestClassifyArchitecture:
    @pytest.mark.parametrize("machine", ["x86_64", "AMD64", "x64"])
    def test_amd64(self, machine: str) -> None:
        assert classify_architecture(machine) == Architecture.AMD64

    @pytest.mark.parametrize("machine", ["aarch64", "arm64", "ARM64"])
    def test_arm64(self, machine: str) -> None:
        assert classify_architecture(machine) == Architecture.ARM64

    @pytest.mark.parametrize("machine", ["i686", "riscv64", ""])
    def test_unknown(self, machine: str) -> None:
        assert classify_architecture(machine) == Architecture.UNKNOWN


class TestOSFamily:
    def test_str(self) -> None:
        assert str(OSFamily.DEBIAN) == "debian"
        assert str(Architecture.ARM64) == "arm64"

    def test_release_os(self) -> None:
        assert OSFamily.MACOS.release_os == "macos"
        assert OSFamily.ARCH.release_os == "linux"
        assert OSFamily.GENERIC.release_os == "linux"
        assert OSFamily.UNKNOWN.release_os is None

    def test_parse(self) -> None:
        assert OSFamily.parse(" Fedora ") == OSFamily.FEDORA

    def test_parse_rejects_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown OS family"):
            OSFamily.parse("windows")


class TestDetectPlatform:
    """Probing with injected collaborators."""

    def test_ubuntu_host(self, tmp_path: Path) -> None:
        os_release = tmp_path / "os-release"
        os_release.write_text(UBUNTU_OS_RELEASE, encoding="utf-8")

        info = detect_platform(
            which=_which("apt-get", "snap"),
            sys_platform="linux",
            machine="x86_64",
            os_release_path=os_release,
        )
        assert info.os_family == OSFamily.DEBIAN
        assert info.architecture == Architecture.AMD64
        assert info.available_managers == ("snap", "apt")
        assert info.distro_id == "ubuntu"
        assert info.codename == "noble"
        assert info.is_linux
        assert not info.is_macos

    def test_macos_host(self, tmp_path: Path) -> None:
        info = detect_platform(
            which=_which("brew"),
            sys_platform="darwin",
            machine="arm64",
            os_release_path=tmp_path / "missing",
        )
        assert info.os_family == OSFamily.MACOS
        assert info.available_managers == ("brew", "brew-cask")
        assert info.release_os == "macos"
        assert info.distro_id is None

    def test_no_managers_is_valid(self, tmp_path: Path) -> None:
        info = detect_platform(
            which=_which(),
            sys_platform="linux",
            machine="aarch64",
            os_release_path=tmp_path / "missing",
        )
        assert info.available_managers == ()
        assert info.os_family == OSFamily.GENERIC
        assert info.architecture == Architecture.ARM64

    def test_unknown_host_never_raises(self, tmp_path: Path) -> None:
        info = detect_platform(
            which=_which(),
            sys_platform="win32",
            machine="",
            os_release_path=tmp_path / "missing",
        )
        assert info.os_family == OSFamily.UNKNOWN
        assert info.release_os is None

    def test_manager_order_follows_preference(self) -> None:
        managers = detect_available_managers(_which("pacman", "flatpak", "cargo"))
        assert managers == ("flatpak", "pacman", "cargo")

    def test_detect_is_cached(self) -> None:
        assert detect() is detect()


class TestPlatformInfo:
    def test_has_manager(self) -> None:
        info = PlatformInfo(OSFamily.FEDORA, Architecture.AMD64, ("dnf",))
        assert info.has_manager("dnf")
        assert not info.has_manager("apt")

    def test_str(self) -> None:
        info = PlatformInfo(OSFamily.FEDORA, Architecture.AMD64, ("dnf",))
        assert str(info) == "fedora-amd64 (managers: dnf)"
