"""
Tool installation from GitHub releases.
"""

from .installer import (
    ToolInstaller,
    check_or_install,
    normalize_extract_dir,
    find_binary,
    repair_permissions,
)

__all__ = [
    "ToolInstaller",
    "check_or_install",
    "normalize_extract_dir",
    "find_binary",
    "repair_permissions",
]
