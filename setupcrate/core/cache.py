"""
Local tool cache keyed by tool name, version and architecture.

Layout under the cache root:

    <name>/<version>/<arch>/           installed contents
    <name>/<version>/<arch>.complete   written once the copy finished

An entry without its ``.complete`` marker is a partial copy and is ignored.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from setupcrate.core.exceptions import CacheError
from setupcrate.core.filesystem import (
    FilesystemError,
    copy_tree,
    safe_rmtree,
)
from setupcrate.core.versions import (
    ANY_VERSION,
    exact_version,
    parse_spec,
    parse_version,
)

logger = logging.getLogger(__name__)

COMPLETE_SUFFIX = ".complete"


@dataclass(frozen=True)
class CacheEntry:
    """A completed tool installation in the cache."""

    name: str
    version: str
    directory: Path


class ToolCache:
    """
    Directory-backed tool cache.

    Example:
        >>> cache = ToolCache(Path("/opt/hostedtoolcache"), arch="x64")
        >>> entry = cache.find("mdBook", "^0.4")
        >>> if entry is None:
        ...     directory = cache.cache_dir(extracted, "mdBook", "0.4.2")
    """

    def __init__(self, root: Path, arch: str):
        self.root = Path(root)
        self.arch = arch

        logger.debug(f"Initialized tool cache at {self.root} ({self.arch})")

    def _entry_dir(self, name: str, version: str) -> Path:
        return self.root / name / version / self.arch

    def _marker(self, name: str, version: str) -> Path:
        return self.root / name / version / f"{self.arch}{COMPLETE_SUFFIX}"

    def is_complete(self, name: str, version: str) -> bool:
        return (
            self._marker(name, version).is_file()
            and self._entry_dir(name, version).is_dir()
        )

    def list_versions(self, name: str) -> List[str]:
        """
        List completed versions of a tool for this architecture.

        Returns:
            Version strings, newest first for valid semver, invalid ones last
        """
        tool_dir = self.root / name
        if not tool_dir.is_dir():
            return []

        versions = [
            child.name
            for child in tool_dir.iterdir()
            if child.is_dir() and self.is_complete(name, child.name)
        ]

        def sort_key(version: str):
            parsed = parse_version(version)
            return (parsed is not None, parsed if parsed is not None else version)

        return sorted(versions, key=sort_key, reverse=True)

    def find(self, name: str, version_spec: Optional[str] = None) -> Optional[CacheEntry]:
        """
        Find a cached installation satisfying a version range.

        Args:
            name: Tool name
            version_spec: npm-style range; None or '*' matches any version

        Returns:
            The highest satisfying entry, or None on a miss

        Raises:
            InvalidVersionError: If the range cannot be parsed
        """
        version_spec = version_spec or ANY_VERSION

        pinned = exact_version(version_spec)
        if pinned is not None:
            if self.is_complete(name, pinned):
                return CacheEntry(name, pinned, self._entry_dir(name, pinned))
            logger.debug(f"{name} {pinned} not found in tool cache")
            return None

        spec = parse_spec(version_spec)
        for version in self.list_versions(name):
            parsed = parse_version(version)
            if parsed is None:
                logger.debug(f"Ignoring non-semver cache entry {name}/{version}")
                continue
            if spec.match(parsed):
                logger.debug(f"Found {name} {version} in tool cache")
                return CacheEntry(name, version, self._entry_dir(name, version))

        logger.debug(f"No cached {name} matches {version_spec}")
        return None

    def cache_dir(self, source: Path, name: str, version: str) -> Path:
        """
        Copy a directory into the cache as (name, version).

        Any previous copy for the same key is replaced.

        Args:
            source: Directory whose contents become the entry
            name: Tool name
            version: Exact resolved version

        Returns:
            The cache entry directory

        Raises:
            CacheError: If the copy fails
        """
        source = Path(source)
        if not source.is_dir():
            raise CacheError(f"Cannot cache {name} {version}: {source} is not a directory")

        destination = self._entry_dir(name, version)
        marker = self._marker(name, version)

        logger.debug(f"Caching {name} {version} from {source} to {destination}")

        try:
            marker.unlink(missing_ok=True)
            if destination.exists():
                safe_rmtree(destination, require_prefix=self.root)
            copy_tree(source, destination)
            marker.touch()
        except (FilesystemError, OSError) as e:
            raise CacheError(f"Failed to cache {name} {version}: {e}") from e

        return destination


__all__ = [
    "CacheEntry",
    "ToolCache",
]
