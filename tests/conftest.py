"""Shared test fixtures."""

import io
import json
import logging
import tarfile
import tempfile
from pathlib import Path

import pytest
import structlog

from lwp_cli.bootstrap import InstallationProbe, get_platform_paths
from lwp_cli.bootstrap.process import ProcessResult
from lwp_cli.config import ADDON_PACKAGE_NAME, CLIConfig


@pytest.fixture(autouse=True)
def quiet_logging():
    """Silence structlog output so stdout assertions stay clean."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def config(temp_dir):
    """Test configuration with a temp runtime dir and a fake release index."""
    return CLIConfig(
        runtime_dir=temp_dir / "runtime",
        release_index_url="https://releases.test/latest",
        restart_delay=0.0,
    )


@pytest.fixture
def paths(temp_dir):
    """Linux layout rooted in a temp home directory."""
    return get_platform_paths("linux", home=temp_dir / "home", environ={})


@pytest.fixture
def probe(paths):
    """Probe that finds `local` on PATH."""
    return InstallationProbe(
        paths,
        addon_package_name=ADDON_PACKAGE_NAME,
        addon_dir_name="local-addon-cli",
        platform="linux",
        which=lambda name: f"/usr/bin/{name}",
    )


@pytest.fixture
def dev_addon(temp_dir):
    """A development checkout of the addon."""
    source = temp_dir / "checkout" / "addon"
    (source / "lib").mkdir(parents=True)
    (source / "package.json").write_text(json.dumps({"name": ADDON_PACKAGE_NAME}))
    (source / "lib" / "main.js").write_text("module.exports = {};")
    return source


def write_connection_info(paths, **data) -> None:
    """Write graphql-connection-info.json the way Local does."""
    path = Path(paths.connection_info_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


def write_activation_flags(paths, flags) -> None:
    path = Path(paths.activation_flags_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(flags if isinstance(flags, str) else json.dumps(flags))


def make_addon_archive(files: dict[str, str], prefix: str = "package/") -> bytes:
    """Build an npm-pack style .tgz in memory."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
        for name, content in files.items():
            data = content.encode()
            info = tarfile.TarInfo(prefix + name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeController:
    """Records process control calls instead of touching real processes."""

    def __init__(self, running: bool = False, ok: bool = True) -> None:
        self.running = running
        self.ok = ok
        self.calls: list[str] = []

    def is_running(self) -> bool:
        self.calls.append("is_running")
        return self.running

    def start(self) -> ProcessResult:
        self.calls.append("start")
        return ProcessResult(ok=self.ok)

    def stop(self) -> ProcessResult:
        self.calls.append("stop")
        return ProcessResult(ok=self.ok)

    def restart(self) -> ProcessResult:
        self.calls.append("restart")
        return ProcessResult(ok=self.ok)

    @property
    def launches(self) -> list[str]:
        return [c for c in self.calls if c in ("start", "restart")]


class FakeReadiness:
    """Readiness probe with a canned answer."""

    def __init__(self, ready: bool = True) -> None:
        self.ready = ready
        self.waits: list[tuple[int, int]] = []

    def wait_for_ready(self, timeout_ms: int = 30000, poll_interval_ms: int = 500) -> bool:
        self.waits.append((timeout_ms, poll_interval_ms))
        return self.ready

    def check_once(self, info, timeout=None) -> bool:
        return self.ready


@pytest.fixture
def clock():
    return FakeClock()
