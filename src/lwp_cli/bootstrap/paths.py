"""
Platform Paths - Where Local keeps its files on each OS.

Local writes everything the CLI needs under its application data directory:
- addons/                         installed addons (directories or symlinks)
- enabled-addons.json             addon package id -> enabled flag
- graphql-connection-info.json    port and auth token of the running server

Paths are recomputed on every call so environment overrides always apply.
"""

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath

from ..errors import UnsupportedPlatformError

__all__ = [
    "PlatformPaths",
    "get_platform_paths",
    "LINUX_EXECUTABLE_CANDIDATES",
    "SUPPORTED_PLATFORMS",
]

SUPPORTED_PLATFORMS = ("darwin", "win32", "linux")

ACTIVATION_FLAGS_NAME = "enabled-addons.json"
CONNECTION_INFO_NAME = "graphql-connection-info.json"

# Known install locations of the Linux packages, in lookup order
LINUX_EXECUTABLE_CANDIDATES = (
    "/usr/bin/Local",
    "/usr/bin/local",
    "/opt/Local/local",
)


@dataclass(frozen=True)
class PlatformPaths:
    """Filesystem locations for one platform.

    Fields are concrete Paths when resolving for the running OS, and pure
    paths of the target flavour otherwise (e.g. win32 paths on a Linux host).
    """

    data_dir: PurePath
    addons_dir: PurePath
    activation_flags_file: PurePath
    connection_info_file: PurePath
    app_executable_path: PurePath
    app_process_name: str


def _path_type(platform: str) -> type[PurePath]:
    """Pick a path class that parses the target platform's separators."""
    target_is_windows = platform == "win32"
    host_is_windows = os.name == "nt"
    if target_is_windows == host_is_windows:
        return Path
    return PureWindowsPath if target_is_windows else PurePosixPath


def get_platform_paths(
    platform: str | None = None,
    home: PurePath | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> PlatformPaths:
    """Resolve Local's paths for an OS family.

    Args:
        platform: sys.platform style identifier (defaults to the current one)
        home: User home directory (defaults to Path.home())
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Fully populated PlatformPaths

    Raises:
        UnsupportedPlatformError: If platform is not darwin, win32 or linux
    """
    platform = platform or sys.platform
    env = os.environ if environ is None else environ

    if platform not in SUPPORTED_PLATFORMS:
        raise UnsupportedPlatformError(platform)

    P = _path_type(platform)
    home_dir = P(home) if home is not None else P(Path.home())

    if platform == "darwin":
        data_dir = home_dir / "Library" / "Application Support" / "Local"
        executable = P("/Applications/Local.app")
        process_name = "Local"
    elif platform == "win32":
        app_data = env.get("APPDATA")
        roaming = P(app_data) if app_data else home_dir / "AppData" / "Roaming"
        program_files = P(env.get("ProgramFiles") or "C:\\Program Files")
        data_dir = roaming / "Local"
        executable = program_files / "Local" / "Local.exe"
        process_name = "Local.exe"
    else:
        config_home = env.get("XDG_CONFIG_HOME")
        data_dir = (P(config_home) if config_home else home_dir / ".config") / "Local"
        executable = P(LINUX_EXECUTABLE_CANDIDATES[-1])
        process_name = "local"

    if env.get("LWP_LOCAL_DATA_DIR"):
        data_dir = P(env["LWP_LOCAL_DATA_DIR"])
    if env.get("LWP_LOCAL_EXECUTABLE"):
        executable = P(env["LWP_LOCAL_EXECUTABLE"])

    return PlatformPaths(
        data_dir=data_dir,
        addons_dir=data_dir / "addons",
        activation_flags_file=data_dir / ACTIVATION_FLAGS_NAME,
        connection_info_file=data_dir / CONNECTION_INFO_NAME,
        app_executable_path=executable,
        app_process_name=process_name,
    )
