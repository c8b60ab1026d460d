"""Platform abstraction layer."""

from .detection import (
    Architecture,
    OSFamily,
    PlatformInfo,
    classify_architecture,
    classify_os_family,
    detect,
    detect_platform,
    parse_os_release,
)
from .managers import MANAGER_IDS, MANAGERS, PackageManager, get_manager
from .paths import (
    home,
    user_bin_dir,
    user_cache_dir,
    user_config_dir,
    user_opt_dir,
)
from .process import (
    NONINTERACTIVE_ENV,
    CommandRunner,
    ProcessError,
    SubprocessRunner,
    command_env,
    is_root,
    run,
    run_interactive,
)

__all__ = [
    # detection
    "Architecture",
    "OSFamily",
    "PlatformInfo",
    "classify_architecture",
    "classify_os_family",
    "detect",
    "detect_platform",
    "parse_os_release",
    # managers
    "MANAGER_IDS",
    "MANAGERS",
    "PackageManager",
    "get_manager",
    # paths
    "home",
    "user_bin_dir",
    "user_cache_dir",
    "user_config_dir",
    "user_opt_dir",
    # process
    "CommandRunner",
    "ProcessError",
    "SubprocessRunner",
    "is_root",
    "run",
    "run_interactive",
    "command_env",
    "NONINTERACTIVE_ENV",
]
