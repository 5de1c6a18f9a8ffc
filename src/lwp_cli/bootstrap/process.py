"""
Process Controller - Start, stop and detect the Local desktop app.

Best effort only. Every operation reports a ProcessResult but never raises:
whether Local actually came up is decided by the readiness probe afterwards.
"""

import shutil
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import structlog

from ..errors import ProcessControlError
from .paths import LINUX_EXECUTABLE_CANDIDATES, PlatformPaths

__all__ = ["ProcessController", "ProcessResult"]

logger = structlog.get_logger(__name__)

COMMAND_TIMEOUT = 10.0
MAC_APP_NAME = "Local"


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a process control call (informational)."""

    ok: bool
    detail: str = ""


class ProcessController:
    """Platform-specific control of the Local process.

    Example:
        controller = ProcessController(paths, platform="darwin")
        if not controller.is_running():
            controller.start()
    """

    def __init__(
        self,
        paths: PlatformPaths,
        platform: str,
        restart_delay: float = 2.0,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.paths = paths
        self.platform = platform
        self.restart_delay = restart_delay
        self._run = run
        self._popen = popen
        self._sleep = sleep
        self._which = which

    def is_running(self) -> bool:
        """Look Local up in the process list."""
        name = self.paths.app_process_name
        if self.platform == "win32":
            cmd = ["tasklist", "/FI", f"IMAGENAME eq {name}"]
        else:
            cmd = ["pgrep", "-x", name]

        try:
            cp = self._exec(cmd)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("process_lookup_failed", cmd=cmd[0], error=str(e))
            return False

        if self.platform == "win32":
            return name in (cp.stdout or "")
        return cp.returncode == 0 and bool((cp.stdout or "").strip())

    def start(self) -> ProcessResult:
        """Launch Local in the background without waiting for it."""
        try:
            if self.platform == "darwin":
                # -g keeps Local from stealing focus
                cp = self._exec(["open", "-g", "-a", MAC_APP_NAME])
                result = _completed(cp)
            elif self.platform == "win32":
                exe = str(self.paths.app_executable_path)
                cp = self._exec(["cmd", "/c", "start", "/MIN", "", exe])
                result = _completed(cp)
            else:
                exe = self._linux_executable()
                self._popen(
                    [exe],
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
                result = ProcessResult(ok=True, detail=exe)
        except (OSError, subprocess.SubprocessError, ProcessControlError) as e:
            result = ProcessResult(ok=False, detail=str(e))

        # A failed launch often just means Local is already up
        if result.ok:
            logger.info("local_start_requested", platform=self.platform)
        else:
            logger.debug("local_start_failed", platform=self.platform, detail=result.detail)
        return result

    def stop(self) -> ProcessResult:
        """Ask Local to quit. Failures are expected when it is not running."""
        name = self.paths.app_process_name
        if self.platform == "darwin":
            commands = [
                ["osascript", "-e", f'quit app "{MAC_APP_NAME}"'],
                ["pkill", "-x", name],
            ]
        elif self.platform == "win32":
            commands = [["taskkill", "/IM", name, "/F"]]
        else:
            commands = [["pkill", "-x", name]]

        result = ProcessResult(ok=False, detail="no stop command")
        for cmd in commands:
            try:
                result = _completed(self._exec(cmd))
            except (OSError, subprocess.SubprocessError, ProcessControlError) as e:
                result = ProcessResult(ok=False, detail=str(e))
            if result.ok:
                break

        logger.info("local_stop_requested", platform=self.platform, ok=result.ok)
        return result

    def restart(self) -> ProcessResult:
        """Stop, let Local release its ports, then start again."""
        self.stop()
        self._sleep(self.restart_delay)
        return self.start()

    def _exec(self, cmd: list[str]) -> subprocess.CompletedProcess:
        return self._run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=COMMAND_TIMEOUT,
        )

    def _linux_executable(self) -> str:
        """Prefer `local` on PATH, then the first existing install location."""
        found = self._which(self.paths.app_process_name)
        if found:
            return found
        configured = Path(self.paths.app_executable_path)
        for candidate in [configured, *(Path(c) for c in LINUX_EXECUTABLE_CANDIDATES)]:
            if candidate.exists():
                return str(candidate)
        return str(configured)


def _completed(cp: subprocess.CompletedProcess) -> ProcessResult:
    """Turn a finished command into a result.

    Raises:
        ProcessControlError: If the command exited non-zero
    """
    if cp.returncode != 0:
        detail = (cp.stderr or cp.stdout or "").strip() or f"exit code {cp.returncode}"
        raise ProcessControlError(f"{cp.args[0]}: {detail}")
    return ProcessResult(ok=True)
