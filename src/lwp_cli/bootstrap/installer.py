"""
Addon Installer - Get the CLI addon into Local and switch it on.

Install strategy (first that works wins):
1. Latest packaged release from the release index: download the .tgz,
   unpack it into Local's addons directory
2. Development copy next to this package: symlink it into the addons directory

Activation flips the addon's entry in enabled-addons.json. Local only reads
that file on startup, so any change means Local has to be (re)started.
"""

import json
import os
import shutil
import tarfile
import tempfile
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog

from ..config import CLIConfig
from ..errors import MANUAL_INSTALL_URL, AddonInstallError
from .paths import PlatformPaths
from .probe import InstallationProbe, read_activation_flags

__all__ = [
    "AddonEnsureResult",
    "AddonInstallResult",
    "AddonInstaller",
    "ReleaseDescriptor",
    "default_development_candidates",
]

logger = structlog.get_logger(__name__)

StatusCallback = Callable[[str], None]

# src/lwp_cli/bootstrap/installer.py -> package and checkout roots
PACKAGE_DIR = Path(__file__).resolve().parents[1]
CHECKOUT_DIR = Path(__file__).resolve().parents[3]


@dataclass(frozen=True)
class ReleaseDescriptor:
    """A packaged addon build from the release index."""

    tag: str
    download_url: str


@dataclass(frozen=True)
class AddonInstallResult:
    """Outcome of install()."""

    success: bool
    needs_restart: bool = False
    error: str | None = None
    method: str | None = None  # "release" or "development"


@dataclass(frozen=True)
class AddonEnsureResult:
    """Outcome of ensure()."""

    success: bool
    needs_restart: bool = False
    error: str | None = None


def default_development_candidates(environ: Mapping[str, str] | None = None) -> list[Path]:
    """Places a development copy of the addon may live, in lookup order.

    - LWP_ADDON_DEV_PATH, if set
    - addon-dist/ bundled inside the installed package
    - addon/ beside this checkout (monorepo layout: packages/cli, packages/addon)
    """
    env = os.environ if environ is None else environ
    candidates: list[Path] = []
    if env.get("LWP_ADDON_DEV_PATH"):
        candidates.append(Path(env["LWP_ADDON_DEV_PATH"]).expanduser())
    candidates.append(PACKAGE_DIR / "addon-dist")
    candidates.append(CHECKOUT_DIR.parent / "addon")
    candidates.append(CHECKOUT_DIR / "addon")
    return candidates


def _is_addon_source(path: Path) -> bool:
    """A usable addon copy is a directory with a package.json."""
    try:
        return path.is_dir() and (path / "package.json").is_file()
    except OSError:
        return False


class AddonInstaller:
    """Installs and activates the CLI addon.

    Example:
        installer = AddonInstaller(paths, config, probe)
        result = installer.ensure()
        if result.success and result.needs_restart:
            controller.restart()
    """

    def __init__(
        self,
        paths: PlatformPaths,
        config: CLIConfig,
        probe: InstallationProbe,
        client: httpx.Client | None = None,
        development_candidates: list[Path] | None = None,
    ) -> None:
        self.paths = paths
        self.config = config
        self.probe = probe
        self._client = client
        self._development_candidates = development_candidates

    # ─── Fast path ───────────────────────────────────────────────────────────

    def ensure(self, on_status: StatusCallback | None = None) -> AddonEnsureResult:
        """Make sure the addon is installed and activated.

        Returns:
            AddonEnsureResult; needs_restart is True whenever anything changed
        """
        state = self.probe.addon_state()
        if state.ready:
            return AddonEnsureResult(success=True, needs_restart=False)

        if state.installed:
            _notify(on_status, "Activating addon...")
            try:
                needs_restart = self.activate()
            except AddonInstallError as e:
                logger.error("addon_activation_failed", error=str(e))
                return AddonEnsureResult(success=False, error=str(e))
            return AddonEnsureResult(success=True, needs_restart=needs_restart)

        result = self.install(on_status=on_status)
        return AddonEnsureResult(
            success=result.success,
            needs_restart=result.needs_restart,
            error=result.error,
        )

    # ─── Activation ──────────────────────────────────────────────────────────

    def activate(self) -> bool:
        """Mark the addon enabled in enabled-addons.json.

        Returns:
            True if the flag changed (Local must restart), False if already on

        Raises:
            AddonInstallError: If the flags file cannot be written
        """
        flags_file = Path(self.paths.activation_flags_file)
        flags = read_activation_flags(flags_file)
        if flags.get(self.config.addon_package_name) is True:
            return False

        flags[self.config.addon_package_name] = True
        try:
            flags_file.parent.mkdir(parents=True, exist_ok=True)
            flags_file.write_text(json.dumps(flags, indent=2), encoding="utf-8")
        except OSError as e:
            raise AddonInstallError(f"Failed to write {flags_file}: {e}") from e
        logger.info("addon_activated", package=self.config.addon_package_name)
        return True

    # ─── Installation ────────────────────────────────────────────────────────

    def install(self, on_status: StatusCallback | None = None) -> AddonInstallResult:
        """Install the addon from a release or a development copy, then activate.

        Args:
            on_status: Receives human-readable progress messages

        Returns:
            AddonInstallResult with error set on failure
        """
        try:
            method = self._install(on_status)
            self.activate()
        except AddonInstallError as e:
            logger.error("addon_install_failed", error=str(e))
            return AddonInstallResult(success=False, error=str(e))

        # A fresh install is never loaded by the running Local
        return AddonInstallResult(success=True, needs_restart=True, method=method)

    def _install(self, on_status: StatusCallback | None) -> str:
        _notify(on_status, "Fetching latest addon release...")
        release = self.fetch_latest_release()

        if release is not None:
            _notify(on_status, f"Downloading addon {release.tag}...")
            archive = self._download(release)
            if archive is not None:
                try:
                    _notify(on_status, "Extracting addon...")
                    self.extract_archive(archive, self.probe.addon_path)
                finally:
                    archive.unlink(missing_ok=True)
                _notify(on_status, f"Installed addon {release.tag}.")
                return "release"

        source = self.find_development_addon()
        if source is not None:
            _notify(on_status, f"Linking development addon from {source} (symlink)...")
            self.link_development_addon(source)
            _notify(on_status, "Development addon linked.")
            return "development"

        raise AddonInstallError(
            "Could not install the Local CLI addon: no release is available and no "
            f"development copy was found. Install it manually: {MANUAL_INSTALL_URL}"
        )

    def fetch_latest_release(self) -> ReleaseDescriptor | None:
        """Query the release index for the newest packaged build.

        Network and format errors are not fatal; they return None so the
        development fallback can run.
        """
        url = self.config.release_index_url
        try:
            response = self._http().get(
                url,
                headers={"Accept": "application/vnd.github+json"},
                timeout=self.config.release_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("release_lookup_failed", url=url, error=str(e))
            return None

        if not isinstance(data, dict):
            logger.warning("release_index_malformed", url=url)
            return None

        assets = data.get("assets")
        if not isinstance(assets, list):
            logger.warning("release_index_malformed", url=url, assets=type(assets).__name__)
            return None

        for asset in assets:
            if not isinstance(asset, dict):
                continue
            name = asset.get("name")
            download_url = asset.get("browser_download_url")
            if not isinstance(name, str) or not isinstance(download_url, str):
                continue
            if name.endswith(self.config.archive_extension) and download_url:
                tag = str(data.get("tag_name") or "latest")
                logger.info("release_found", tag=tag, asset=name)
                return ReleaseDescriptor(tag=tag, download_url=download_url)

        logger.warning("release_has_no_archive", url=url, tag=data.get("tag_name"))
        return None

    def _download(self, release: ReleaseDescriptor) -> Path | None:
        """Stream the release archive into a temp file."""
        try:
            fd, tmp_name = tempfile.mkstemp(prefix="lwp-addon-", suffix=self.config.archive_extension)
        except OSError as e:
            logger.warning("release_download_failed", url=release.download_url, error=str(e))
            return None
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                with self._http().stream(
                    "GET",
                    release.download_url,
                    timeout=self.config.download_timeout,
                    follow_redirects=True,
                ) as response:
                    response.raise_for_status()
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            logger.warning("release_download_failed", url=release.download_url, error=str(e))
            tmp_path.unlink(missing_ok=True)
            return None
        return tmp_path

    def extract_archive(self, archive: Path, target: Path) -> None:
        """Unpack a release archive into target, replacing what was there.

        npm-style archives wrap everything in a single top-level directory
        ("package/"); that level is stripped.

        Raises:
            AddonInstallError: If the archive cannot be read, unpacked or moved
                into place
        """
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=".lwp-addon-", dir=str(target.parent)))
        except OSError as e:
            raise AddonInstallError(f"Failed to prepare {target.parent}: {e}") from e
        try:
            try:
                with tarfile.open(archive, "r:*") as tf:
                    tf.extractall(staging, filter="data")
            except (tarfile.TarError, OSError) as e:
                raise AddonInstallError(f"Failed to extract addon archive: {e}") from e

            root = _select_extracted_root(staging)
            if not any(root.iterdir()):
                raise AddonInstallError("Failed to extract addon archive: archive is empty")

            try:
                _remove_existing(target)
                shutil.move(str(root), str(target))
            except OSError as e:
                raise AddonInstallError(f"Failed to install addon into {target}: {e}") from e
            logger.info("addon_extracted", target=str(target))
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    def find_development_addon(self) -> Path | None:
        """First development copy of the addon that exists on disk."""
        candidates = self._development_candidates
        if candidates is None:
            candidates = default_development_candidates()
        for candidate in candidates:
            if _is_addon_source(candidate):
                logger.debug("development_addon_found", path=str(candidate))
                return candidate.resolve()
        return None

    def link_development_addon(self, source: Path) -> None:
        """Symlink a development copy into Local's addons directory.

        Raises:
            AddonInstallError: If the link cannot be created
        """
        link = self.probe.addon_path
        try:
            link.parent.mkdir(parents=True, exist_ok=True)
            _remove_existing(link)
            link.symlink_to(source, target_is_directory=True)
        except OSError as e:
            raise AddonInstallError(f"Failed to link development addon: {e}") from e
        logger.info("addon_linked", link=str(link), source=str(source))

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def _notify(on_status: StatusCallback | None, message: str) -> None:
    if on_status:
        on_status(message)


def _select_extracted_root(staging: Path) -> Path:
    entries = list(staging.iterdir())
    dirs = [p for p in entries if p.is_dir()]
    if len(dirs) == 1 and len(entries) == 1:
        return dirs[0]
    return staging


def _remove_existing(path: Path) -> None:
    """Clear a previous install (symlink or directory) at path."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)
