"""
Bootstrap - Connect the CLI to Local's GraphQL server.

Handles:
- Locating Local's files on macOS, Windows and Linux
- Installing and activating the CLI addon
- Starting or restarting Local
- Waiting for the GraphQL server and reading its credentials

Example:
    from lwp_cli.bootstrap import BootstrapOptions, bootstrap

    result = bootstrap(BootstrapOptions(on_status=print))
    if result.success:
        client = GraphQLClient(result.connection_info)
"""

from .installer import AddonEnsureResult, AddonInstaller, AddonInstallResult, ReleaseDescriptor
from .orchestrator import (
    BootstrapContext,
    BootstrapOptions,
    BootstrapOrchestrator,
    BootstrapResult,
    bootstrap,
    build_context,
)
from .paths import PlatformPaths, get_platform_paths
from .probe import AddonState, ConnectionInfo, InstallationProbe, read_connection_info
from .process import ProcessController, ProcessResult
from .readiness import ReadinessProbe

__all__ = [
    "AddonEnsureResult",
    "AddonInstaller",
    "AddonInstallResult",
    "AddonState",
    "BootstrapContext",
    "BootstrapOptions",
    "BootstrapOrchestrator",
    "BootstrapResult",
    "ConnectionInfo",
    "InstallationProbe",
    "PlatformPaths",
    "ProcessController",
    "ProcessResult",
    "ReadinessProbe",
    "ReleaseDescriptor",
    "bootstrap",
    "build_context",
    "get_platform_paths",
    "read_connection_info",
]
