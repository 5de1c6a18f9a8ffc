"""
Bootstrap Orchestrator - From "command typed" to "GraphQL endpoint ready".

Steps, strictly in order:
1. Check Local is installed                   (fatal if not)
2. Ensure the CLI addon is installed/enabled  (skippable, fatal on failure)
3. Check whether Local is running
4. Start Local, or restart it when the addon was just (re)activated
5. Wait for the GraphQL server to answer      (fatal on timeout)
6. Read the connection info                   (fatal if missing)

Each step appends a line to the action log so a failed run still shows
what was attempted. Nothing is retried here beyond the readiness polling.
"""

import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import httpx
import structlog

from ..config import CLIConfig
from ..config import config as default_config
from ..errors import (
    AddonInstallError,
    BootstrapError,
    ConnectionInfoError,
    NotInstalledError,
    ReadinessTimeoutError,
)
from .installer import AddonInstaller
from .paths import PlatformPaths, get_platform_paths
from .probe import ConnectionInfo, InstallationProbe
from .process import ProcessController
from .readiness import ReadinessProbe

__all__ = [
    "BootstrapContext",
    "BootstrapOptions",
    "BootstrapOrchestrator",
    "BootstrapResult",
    "bootstrap",
    "build_context",
]

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BootstrapOptions:
    """Caller-controlled knobs for one bootstrap run."""

    skip_addon: bool = False
    verbose: bool = False
    on_status: Callable[[str], None] | None = None
    # None means: take the value from the active CLIConfig
    timeout_ms: int | None = None
    poll_interval_ms: int | None = None


@dataclass(frozen=True)
class BootstrapResult:
    """Outcome of a bootstrap run."""

    success: bool
    connection_info: ConnectionInfo | None = None
    error: str | None = None
    actions: tuple[str, ...] = ()


@dataclass
class BootstrapContext:
    """Everything one bootstrap run works with.

    Built fresh per invocation; tests swap in fakes for any collaborator.
    """

    paths: PlatformPaths
    probe: InstallationProbe
    installer: AddonInstaller
    controller: ProcessController
    readiness: ReadinessProbe
    _owned_clients: list[httpx.Client] = field(default_factory=list, repr=False)

    def close(self) -> None:
        """Close HTTP clients created by build_context()."""
        for client in self._owned_clients:
            client.close()
        self._owned_clients.clear()


def build_context(
    config: CLIConfig | None = None,
    platform: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> BootstrapContext:
    """Wire up the real collaborators for the current machine.

    Raises:
        UnsupportedPlatformError: If the OS has no known Local layout
    """
    config = config or default_config
    platform = platform or sys.platform
    paths = get_platform_paths(platform, environ=environ)

    client = httpx.Client()
    probe = InstallationProbe(
        paths,
        addon_package_name=config.addon_package_name,
        addon_dir_name=config.addon_dir_name,
        platform=platform,
    )
    return BootstrapContext(
        paths=paths,
        probe=probe,
        installer=AddonInstaller(paths, config, probe, client=client),
        controller=ProcessController(paths, platform, restart_delay=config.restart_delay),
        readiness=ReadinessProbe(
            probe.read_connection_info,
            client=client,
            request_timeout=config.health_timeout,
        ),
        _owned_clients=[client],
    )


class BootstrapOrchestrator:
    """Runs the bootstrap state machine once.

    Example:
        orchestrator = BootstrapOrchestrator(build_context(), BootstrapOptions())
        result = orchestrator.run()
    """

    def __init__(
        self,
        context: BootstrapContext,
        options: BootstrapOptions | None = None,
        config: CLIConfig | None = None,
    ) -> None:
        self.context = context
        self.options = options or BootstrapOptions()
        self.config = config or default_config
        self.actions: list[str] = []

    def run(self) -> BootstrapResult:
        """Execute every step; never raises BootstrapError."""
        try:
            info = self._run()
        except BootstrapError as e:
            logger.warning("bootstrap_failed", error=str(e), error_type=type(e).__name__)
            return BootstrapResult(success=False, error=str(e), actions=tuple(self.actions))

        return BootstrapResult(success=True, connection_info=info, actions=tuple(self.actions))

    def _run(self) -> ConnectionInfo:
        ctx = self.context

        self._log("Checking for Local...")
        if not ctx.probe.is_host_app_installed():
            raise NotInstalledError()

        needs_restart = False
        if not self.options.skip_addon:
            self._log("Checking Local CLI addon...")
            ensured = ctx.installer.ensure(on_status=self._log)
            if not ensured.success:
                raise AddonInstallError(ensured.error or "Addon installation failed.")
            needs_restart = ensured.needs_restart
            if needs_restart:
                self._log("Addon installed and activated.")

        running = ctx.controller.is_running()
        self._log("Local is running." if running else "Local is not running.")

        if needs_restart and running:
            self._log("Restarting Local to load the addon...")
            outcome = ctx.controller.restart()
            self._log("Local restarted." if outcome.ok else "Restart requested.")
        elif not running:
            self._log("Starting Local...")
            outcome = ctx.controller.start()
            self._log("Local started." if outcome.ok else "Start requested.")

        self._log("Waiting for Local GraphQL server...")
        timeout_ms = self.options.timeout_ms
        if timeout_ms is None:
            timeout_ms = self.config.ready_timeout_ms
        poll_interval_ms = self.options.poll_interval_ms
        if poll_interval_ms is None:
            poll_interval_ms = self.config.poll_interval_ms
        ready = ctx.readiness.wait_for_ready(timeout_ms=timeout_ms, poll_interval_ms=poll_interval_ms)
        if not ready:
            raise ReadinessTimeoutError()
        self._log("GraphQL server ready.")

        info = ctx.probe.read_connection_info()
        if info is None:
            raise ConnectionInfoError()
        return info

    def _log(self, message: str) -> None:
        self.actions.append(message)
        logger.debug("bootstrap_action", action=message)
        if self.options.on_status:
            self.options.on_status(message)
        if self.options.verbose:
            print(message, file=sys.stderr)


def bootstrap(
    options: BootstrapOptions | None = None,
    context: BootstrapContext | None = None,
    config: CLIConfig | None = None,
) -> BootstrapResult:
    """Ensure Local is running and its GraphQL server is reachable.

    This is the single entry point the rest of the CLI calls before talking
    to Local.

    Args:
        options: Run options (defaults to BootstrapOptions())
        context: Pre-built collaborators (defaults to build_context(config))
        config: CLI configuration used when building the context and for
            readiness timings the options leave unset

    Returns:
        BootstrapResult; failures are reported, never raised
    """
    options = options or BootstrapOptions()
    owns_context = context is None
    if context is None:
        try:
            context = build_context(config)
        except BootstrapError as e:
            return BootstrapResult(success=False, error=str(e))

    try:
        return BootstrapOrchestrator(context, options, config).run()
    finally:
        if owns_context:
            context.close()
