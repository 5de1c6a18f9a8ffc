"""
Installation Probe - Read-only checks against Local's files.

Answers three questions without changing anything on disk:
- Is Local installed?
- Is the CLI addon installed (packaged directory or development symlink)?
- Is the addon switched on in enabled-addons.json?

Also reads the connection info Local writes once its GraphQL server is up.
Every check degrades to False/None on filesystem errors.
"""

import json
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from .paths import LINUX_EXECUTABLE_CANDIDATES, PlatformPaths

__all__ = [
    "AddonState",
    "ConnectionInfo",
    "InstallationProbe",
    "read_activation_flags",
    "read_connection_info",
]

logger = structlog.get_logger(__name__)

LOOPBACK_HOST = "127.0.0.1"


@dataclass(frozen=True)
class AddonState:
    """Addon status derived from the filesystem."""

    installed: bool
    activated: bool

    @property
    def ready(self) -> bool:
        """Installed and activated; nothing left to do."""
        return self.installed and self.activated


@dataclass(frozen=True)
class ConnectionInfo:
    """Endpoint and credentials of Local's GraphQL server."""

    url: str
    subscription_url: str
    port: int
    auth_token: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConnectionInfo":
        """Build from the JSON object Local writes.

        Raises:
            ValueError: If port is not a positive integer, or url,
                subscriptionUrl or authToken is present but not a string
        """
        port = data.get("port")
        # bool is an int subclass; reject it explicitly
        if isinstance(port, bool) or not isinstance(port, int) or port <= 0:
            raise ValueError(f"Invalid port in connection info: {port!r}")
        for key in ("url", "subscriptionUrl", "authToken"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Invalid {key} in connection info: {value!r}")

        return cls(
            url=data.get("url") or f"http://{LOOPBACK_HOST}:{port}/graphql",
            subscription_url=data.get("subscriptionUrl") or f"ws://{LOOPBACK_HOST}:{port}/graphql",
            port=port,
            auth_token=data.get("authToken") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys Local writes."""
        return {
            "url": self.url,
            "subscriptionUrl": self.subscription_url,
            "port": self.port,
            "authToken": self.auth_token,
        }


def read_connection_info(path: Path) -> ConnectionInfo | None:
    """Read and validate graphql-connection-info.json.

    Returns:
        ConnectionInfo, or None if the file is missing, unreadable or invalid
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.debug("connection_info_unreadable", path=str(path), error=str(e))
        return None

    if not isinstance(data, dict):
        logger.debug("connection_info_not_object", path=str(path))
        return None

    try:
        return ConnectionInfo.from_dict(data)
    except ValueError as e:
        logger.debug("connection_info_invalid", path=str(path), error=str(e))
        return None


def read_activation_flags(path: Path) -> dict[str, Any]:
    """Read enabled-addons.json as a mapping.

    Returns:
        The stored mapping, or an empty dict if missing, corrupt or not an object
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning("activation_flags_unreadable", path=str(path), error=str(e))
        return {}

    if not isinstance(data, dict):
        logger.warning("activation_flags_not_object", path=str(path))
        return {}
    return data


class InstallationProbe:
    """Side-effect free installation checks.

    Example:
        probe = InstallationProbe(get_platform_paths(), ADDON_PACKAGE_NAME, "local-addon-cli")
        if not probe.is_host_app_installed():
            ...
        state = probe.addon_state()
    """

    def __init__(
        self,
        paths: PlatformPaths,
        addon_package_name: str,
        addon_dir_name: str,
        platform: str = "",
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.paths = paths
        self.addon_package_name = addon_package_name
        self.addon_dir_name = addon_dir_name
        self.platform = platform
        self._which = which

    @property
    def addon_path(self) -> Path:
        """Where the addon lives inside Local's addons directory."""
        return Path(self.paths.addons_dir) / self.addon_dir_name

    def is_host_app_installed(self) -> bool:
        """Check for the Local executable.

        On Linux, PATH is searched first, then the fixed install locations.
        """
        try:
            if self.platform == "linux":
                if self._which(self.paths.app_process_name):
                    return True
                candidates = [Path(self.paths.app_executable_path)]
                candidates += [Path(c) for c in LINUX_EXECUTABLE_CANDIDATES]
                return any(c.exists() for c in candidates)
            return Path(self.paths.app_executable_path).exists()
        except OSError as e:
            logger.debug("host_app_probe_failed", error=str(e))
            return False

    def is_addon_installed(self) -> bool:
        """Check for the addon directory or a development symlink."""
        path = self.addon_path
        try:
            # is_symlink() catches dangling development links too
            return path.is_symlink() or path.is_dir()
        except OSError as e:
            logger.debug("addon_probe_failed", path=str(path), error=str(e))
            return False

    def is_addon_activated(self) -> bool:
        """Check enabled-addons.json for an exact True under the package id."""
        flags = read_activation_flags(Path(self.paths.activation_flags_file))
        return flags.get(self.addon_package_name) is True

    def addon_state(self) -> AddonState:
        return AddonState(
            installed=self.is_addon_installed(),
            activated=self.is_addon_activated(),
        )

    def read_connection_info(self) -> ConnectionInfo | None:
        return read_connection_info(Path(self.paths.connection_info_file))
