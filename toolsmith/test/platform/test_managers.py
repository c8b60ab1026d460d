"""Tests for toolsmith.platform.managers module."""

from __future__ import annotations

from toolsmith.platform.managers import MANAGER_IDS, MANAGERS, get_manager


class TestCatalogue:
    def test_ids_are_unique(self) -> None:
        assert len(MANAGER_IDS) == len(MANAGERS)

    def test_brew_preferred_over_system_managers(self) -> None:
        ids = [m.id for m in MANAGERS]
        assert ids.index("brew") < ids.index("apt")
        assert ids.index("apt") < ids.index("cargo")

    def test_lookup(self) -> None:
        apt = get_manager("apt")
        assert apt is not None
        assert apt.binary == "apt-get"
        assert get_manager("chocolatey") is None

    def test_cask_shares_brew_binary(self) -> None:
        cask = get_manager("brew-cask")
        assert cask is not None
        assert cask.binary == "brew"


class TestArgv:
    """Install and refresh command lines."""

    def test_privileged_manager_gets_sudo(self) -> None:
        apt = get_manager("apt")
        assert apt is not None
        assert apt.install_argv(["jq", "curl"], sudo=True) == [
            "sudo",
            "apt-get",
            "install",
            "-y",
            "-qq",
            "jq",
            "curl",
        ]
        assert apt.refresh_argv(sudo=True) == ["sudo", "apt-get", "update", "-qq"]

    def test_no_sudo_when_disabled(self) -> None:
        dnf = get_manager("dnf")
        assert dnf is not None
        assert dnf.install_argv(["jq"], sudo=False) == ["dnf", "install", "-y", "jq"]

    def test_unprivileged_manager_never_gets_sudo(self) -> None:
        brew = get_manager("brew")
        assert brew is not None
        assert brew.install_argv(["jq"], sudo=True) == ["brew", "install", "jq"]

    def test_manager_without_refresh(self) -> None:
        snap = get_manager("snap")
        assert snap is not None
        assert snap.refresh_argv(sudo=True) is None
