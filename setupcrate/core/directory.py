"""
Directory layout for setup-crate.

Directory Structure:
    Global Cache (~/.setup-crate/ or %USERPROFILE%\\.setup-crate\\):
        - tools/          : Default tool cache root

    Tool cache root (default tools/, or $RUNNER_TOOL_CACHE on CI runners):
        - <name>/<version>/<arch>/          : Installed tool contents
        - <name>/<version>/<arch>.complete  : Marker written after a full copy
        - lock/                             : Per-tool lock files
"""

import os
from pathlib import Path

from setupcrate.core.exceptions import SetupCrateError


class DirectoryError(SetupCrateError):
    """Base exception for directory-related errors."""

    pass


def get_global_cache_dir() -> Path:
    """
    Get the platform-specific global cache directory path.

    Returns:
        Path: The global cache directory path.
            - Windows: %USERPROFILE%\\.setup-crate
            - Linux/macOS: ~/.setup-crate/

    Example:
        >>> get_global_cache_dir()
        PosixPath('/home/user/.setup-crate')
    """
    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine global cache directory."
            )
        return Path(user_profile) / ".setup-crate"
    else:
        return Path.home() / ".setup-crate"


def get_default_tool_cache_dir() -> Path:
    """Default tool cache root when no runner cache is configured."""
    return get_global_cache_dir() / "tools"


def get_lock_dir(cache_root: Path) -> Path:
    """Directory holding per-tool lock files for a cache root."""
    return Path(cache_root) / "lock"


__all__ = [
    "DirectoryError",
    "get_global_cache_dir",
    "get_default_tool_cache_dir",
    "get_lock_dir",
]
