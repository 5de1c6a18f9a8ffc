"""
Centralized configuration for the lwp CLI.

Configuration sources (priority order):
1. Environment variables (LWP_*)
2. Default values

Environment variables:
- LWP_LOG_LEVEL: Console log level (default: WARNING)
- LWP_RUNTIME_DIR: Runtime directory for logs (default: ~/.local/share/lwp-cli)
- LWP_ADDON_RELEASES_URL: Release index queried for packaged addon builds
- LWP_READY_TIMEOUT_MS: Overall readiness budget in milliseconds (default: 30000)
- LWP_POLL_INTERVAL_MS: Delay between readiness polls in milliseconds (default: 500)
- LWP_RESTART_DELAY: Seconds to wait between stopping and starting Local (default: 2.0)

Path overrides (LWP_LOCAL_DATA_DIR, LWP_LOCAL_EXECUTABLE, LWP_ADDON_DEV_PATH)
are read at call time by the bootstrap modules, not frozen here.
"""

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = ["CLIConfig", "config", "DEFAULT_RUNTIME_DIR"]

DEFAULT_RUNTIME_DIR = Path.home() / ".local/share/lwp-cli"

ADDON_PACKAGE_NAME = "@local-labs-jpollock/local-addon-cli"
DEFAULT_RELEASES_URL = "https://api.github.com/repos/jpollock/local-addon-cli/releases/latest"


def _get_env(key: str, default: str) -> str:
    """Get environment variable with LWP_ prefix."""
    return os.environ.get(f"LWP_{key}", default)


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    return int(_get_env(key, str(default)))


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    return float(_get_env(key, str(default)))


def _get_env_path(key: str, default: Path) -> Path:
    """Get path environment variable."""
    val = os.environ.get(f"LWP_{key}")
    return Path(val) if val else default


@dataclass(frozen=True)
class CLIConfig:
    """Immutable CLI configuration."""

    log_level: str = _get_env("LOG_LEVEL", "WARNING")
    runtime_dir: Path = _get_env_path("RUNTIME_DIR", DEFAULT_RUNTIME_DIR)

    # Addon identity and distribution
    addon_package_name: str = ADDON_PACKAGE_NAME
    addon_dir_name: str = "local-addon-cli"
    release_index_url: str = _get_env("ADDON_RELEASES_URL", DEFAULT_RELEASES_URL)
    archive_extension: str = ".tgz"

    # Readiness polling
    ready_timeout_ms: int = _get_env_int("READY_TIMEOUT_MS", 30000)
    poll_interval_ms: int = _get_env_int("POLL_INTERVAL_MS", 500)
    health_timeout: float = 2.0

    # Network timeouts (seconds)
    release_timeout: float = 10.0
    download_timeout: float = 60.0

    # Process control
    restart_delay: float = _get_env_float("RESTART_DELAY", 2.0)

    # Log rotation
    log_max_bytes: int = 5 * 1024 * 1024  # 5MB
    log_backup_count: int = 3

    @property
    def log_dir(self) -> Path:
        """Log directory."""
        return self.runtime_dir / "logs"

    @property
    def log_file(self) -> Path:
        """Log file path."""
        return self.log_dir / "lwp.log"


# Global singleton
config = CLIConfig()
