"""
Tool installer.

Checks the tool cache for a tool and, if it is missing, fetches the release
asset for this platform from GitHub, extracts it, caches it and makes sure
the binary is executable.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote, urlparse

import requests

from setupcrate.config.inputs import SetupConfig
from setupcrate.core.cache import ToolCache
from setupcrate.core.directory import get_lock_dir
from setupcrate.core.download import download_file
from setupcrate.core.exceptions import ArchiveExtractionError, PermissionRepairError
from setupcrate.core.filesystem import (
    FilesystemError,
    extract_tar,
    extract_zip,
    safe_rmtree,
    temporary_directory,
)
from setupcrate.core.locking import LockManager
from setupcrate.core.platform import PlatformInfo, detect_platform, resolve_targets
from setupcrate.releases.client import GitHubReleaseClient
from setupcrate.releases.locator import locate_release
from setupcrate.releases.models import InstalledTool, ToolDescriptor

logger = logging.getLogger(__name__)

STAGING_DIR_NAME = "setup-crate-binaries"
EXECUTABLE_MODE = 0o755


def staging_root(temp_dir: Path) -> Path:
    """Well-known directory under temp_dir that naked binaries are moved into."""
    return Path(temp_dir) / STAGING_DIR_NAME


def normalize_extract_dir(extract_dir: Path) -> Path:
    """
    Descend into a lone top-level directory.

    Archives often wrap their contents in a single folder such as
    ``tool-v1.2.3-x86_64-unknown-linux-gnu/``. When that folder is the only
    entry it becomes the directory to cache. Applied once, not recursively.
    """
    entries = list(extract_dir.iterdir())
    if len(entries) == 1:
        only = entries[0]
        if only.is_dir() and not only.is_symlink():
            logger.debug(f"Descending into single extracted directory {only.name}")
            return only
    return extract_dir


def find_binary(directory: Path, name: str, bin_name: Optional[str] = None) -> Path:
    """
    Locate the tool binary in an installed directory.

    An explicit binary name wins; otherwise the first entry whose name equals
    the tool name case-insensitively; otherwise the tool name itself.
    """
    if bin_name:
        return directory / bin_name
    for entry in sorted(os.listdir(directory)):
        if entry.lower() == name.lower():
            return directory / entry
    return directory / name


def repair_permissions(directory: Path, name: str, bin_name: Optional[str] = None) -> None:
    """
    Make the tool binary executable (0o755) if it is not.

    Raises:
        PermissionRepairError: If chmod fails
    """
    binary = find_binary(directory, name, bin_name)
    if os.access(binary, os.X_OK):
        return
    try:
        os.chmod(binary, EXECUTABLE_MODE)
    except OSError as e:
        raise PermissionRepairError(
            f"Failed to make {binary} executable: {e}"
        ) from e
    logger.debug(f"Fixed file permissions (-> 0o755) for {binary}")


class ToolInstaller:
    """
    Installs tools from GitHub releases into the tool cache.

    Example:
        >>> installer = ToolInstaller(config)
        >>> tool = installer.check_or_install(config.tool)
        >>> print(tool.directory)
    """

    def __init__(
        self,
        config: SetupConfig,
        platform: Optional[PlatformInfo] = None,
        client: Optional[GitHubReleaseClient] = None,
        cache: Optional[ToolCache] = None,
        lock_manager: Optional[LockManager] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize installer.

        Args:
            config: Resolved configuration
            platform: Platform information (auto-detected if None)
            client: Release listing client (built from config if None)
            cache: Tool cache (rooted at config.cache_dir if None)
            lock_manager: Lock manager (under the cache root if None)
            session: requests session used for asset downloads
        """
        self.config = config
        self.platform = platform or detect_platform()
        self.session = session or requests.Session()
        self.client = client or GitHubReleaseClient(
            token=config.github_token,
            api_url=config.api_url,
            per_page=config.per_page,
            timeout=config.request_timeout,
        )
        self.cache = cache or ToolCache(config.cache_dir, arch=self.platform.arch)
        self.lock_manager = lock_manager or LockManager(get_lock_dir(config.cache_dir))

    @property
    def targets(self) -> List[str]:
        return resolve_targets(self.platform.arch, self.platform.os)

    def check_or_install(self, tool: ToolDescriptor) -> InstalledTool:
        """
        Return the cached tool, installing it first on a cache miss.

        Args:
            tool: Tool to check or install

        Returns:
            The installed tool

        Raises:
            SetupCrateError: Any failure while resolving, downloading,
                extracting, caching or repairing permissions
        """
        installed = self._from_cache(tool)
        if installed is not None:
            return installed

        with self.lock_manager.tool_lock(tool.name, timeout=self.config.lock_timeout):
            # Another process may have installed it while we waited.
            installed = self._from_cache(tool)
            if installed is not None:
                return installed
            return self._install(tool)

    def _from_cache(self, tool: ToolDescriptor) -> Optional[InstalledTool]:
        entry = self.cache.find(tool.name, tool.version_spec)
        if entry is None:
            return None
        logger.debug(f"Using cached {tool.name} v{entry.version} at {entry.directory}")
        return InstalledTool(
            owner=tool.owner,
            name=tool.name,
            version=entry.version,
            directory=entry.directory,
            bin=tool.bin,
        )

    def _install(self, tool: ToolDescriptor) -> InstalledTool:
        release = locate_release(tool, self.targets, self.client)
        version = release.version

        with temporary_directory(prefix="setup-crate-", parent=self.config.temp_dir) as work_dir:
            artifact = work_dir / _asset_filename(release.download_url, tool.name)
            download_file(
                release.download_url,
                artifact,
                timeout=self.config.request_timeout,
                session=self.session,
            )
            logger.debug(f"Successfully downloaded {tool.name} v{version}")

            extract_dir = self._extract(tool, version, release.download_url, artifact, work_dir)
            extract_dir = normalize_extract_dir(extract_dir)

            directory = self.cache.cache_dir(extract_dir, tool.name, version)

        if not self.platform.is_windows:
            repair_permissions(directory, tool.name, tool.bin)

        return InstalledTool(
            owner=tool.owner,
            name=tool.name,
            version=version,
            directory=directory,
            bin=tool.bin,
        )

    def _extract(
        self,
        tool: ToolDescriptor,
        version: str,
        download_url: str,
        artifact: Path,
        work_dir: Path,
    ) -> Path:
        url_path = urlparse(download_url).path.lower()

        if url_path.endswith(".zip"):
            extract_dir = extract_zip(artifact, work_dir / "extract")
            logger.debug(f"Successfully extracted zip archive for {tool.name} v{version}")
        elif url_path.endswith((".tar.gz", ".tgz")):
            extract_dir = extract_tar(artifact, work_dir / "extract")
            logger.debug(f"Successfully extracted tar archive for {tool.name} v{version}")
        else:
            logger.debug(
                f"Did not find archive to extract for {tool.name} v{version}, "
                "treating downloaded tool as naked binary"
            )
            extract_dir = self._stage_binary(tool, artifact)
        return extract_dir

    def _stage_binary(self, tool: ToolDescriptor, artifact: Path) -> Path:
        root = staging_root(self.config.temp_dir)
        staging_dir = root / tool.name
        binary_name = tool.name
        if artifact.name.lower().endswith(".exe") and not binary_name.lower().endswith(".exe"):
            binary_name += ".exe"

        try:
            if staging_dir.exists():
                safe_rmtree(staging_dir, require_prefix=root)
            staging_dir.mkdir(parents=True, exist_ok=True)
            new_path = staging_dir / binary_name
            shutil.move(str(artifact), str(new_path))
        except (FilesystemError, OSError) as e:
            raise ArchiveExtractionError(
                f"Failed to stage binary for {tool.name} in {staging_dir}: {e}"
            ) from e

        logger.debug(f"Successfully moved binary from {artifact} to {new_path}")
        return staging_dir


def _asset_filename(download_url: str, fallback: str) -> str:
    name = unquote(Path(urlparse(download_url).path).name)
    return name or fallback


def check_or_install(
    tool: ToolDescriptor,
    config: SetupConfig,
    platform: Optional[PlatformInfo] = None,
) -> InstalledTool:
    """
    Check the tool cache for the tool and fetch it from GitHub if missing.

    Args:
        tool: Tool to check or install
        config: Resolved configuration
        platform: Platform information (auto-detected if None)

    Returns:
        The installed tool
    """
    return ToolInstaller(config, platform=platform).check_or_install(tool)


__all__ = [
    "ToolInstaller",
    "check_or_install",
    "normalize_extract_dir",
    "find_binary",
    "repair_permissions",
    "staging_root",
]
