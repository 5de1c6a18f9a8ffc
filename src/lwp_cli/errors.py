"""
Bootstrap errors.

Only the terminal kinds below may end a bootstrap run. Probe-level failures
(missing files, process lookups, refused connections) are downgraded to
False/None where they happen and never reach this hierarchy.
"""

__all__ = [
    "BootstrapError",
    "UnsupportedPlatformError",
    "NotInstalledError",
    "AddonInstallError",
    "ProcessControlError",
    "ReadinessTimeoutError",
    "ConnectionInfoError",
]

DOWNLOAD_URL = "https://localwp.com"
MANUAL_INSTALL_URL = "https://github.com/jpollock/local-addon-cli#installation"


class BootstrapError(Exception):
    """Base class for bootstrap failures."""


class UnsupportedPlatformError(BootstrapError):
    """Operating system family has no known Local layout."""

    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(f"Unsupported platform: {platform}")


class NotInstalledError(BootstrapError):
    """Local itself is missing."""

    def __init__(self) -> None:
        super().__init__(f"Local is not installed. Download from {DOWNLOAD_URL}")


class AddonInstallError(BootstrapError):
    """Neither a packaged release nor a development copy could be installed."""


class ProcessControlError(BootstrapError):
    """Starting or stopping Local failed.

    Informational only: readiness polling decides whether bootstrap succeeds.
    """


class ReadinessTimeoutError(BootstrapError):
    """GraphQL server did not answer a health probe within the budget."""

    def __init__(self, message: str = "Timed out waiting for Local. Is Local running?") -> None:
        super().__init__(message)


class ConnectionInfoError(BootstrapError):
    """Connection info vanished or became unreadable after a successful probe."""

    def __init__(self, message: str = "Could not read GraphQL connection info.") -> None:
        super().__init__(message)
