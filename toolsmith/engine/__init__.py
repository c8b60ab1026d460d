"""Provisioning engine: versions, assets, repositories, hooks and the orchestrator."""

from .assets import ArchiveKind, Asset, classify_asset, select_asset
from .events import (
    POST_DEPENDENCY_RESOLUTION,
    POST_INSTALL,
    PRE_DEPENDENCY_RESOLUTION,
    PRE_INSTALL,
    EventBus,
    HookFailure,
)
from .orchestrator import Orchestrator, build_http_client
from .repos import HostFiles, LocalHostFiles, RepositoryProvisioner, RepoStatus
from .report import RecipeOutcome, RecipeStatus, RunReport
from .state import Decision, InstallationState
from .strategies import choose_strategy
from .versions import (
    Ordering,
    ReleaseVersion,
    Version,
    VersionOracle,
    compare,
    parse_version,
)

__all__ = [
    # assets
    "ArchiveKind",
    "Asset",
    "classify_asset",
    "select_asset",
    # events
    "POST_DEPENDENCY_RESOLUTION",
    "POST_INSTALL",
    "PRE_DEPENDENCY_RESOLUTION",
    "PRE_INSTALL",
    "EventBus",
    "HookFailure",
    # orchestrator
    "Orchestrator",
    "build_http_client",
    # repos
    "HostFiles",
    "LocalHostFiles",
    "RepositoryProvisioner",
    "RepoStatus",
    # report
    "RecipeOutcome",
    "RecipeStatus",
    "RunReport",
    # state
    "Decision",
    "InstallationState",
    # strategies
    "choose_strategy",
    # versions
    "Ordering",
    "ReleaseVersion",
    "Version",
    "VersionOracle",
    "compare",
    "parse_version",
]
